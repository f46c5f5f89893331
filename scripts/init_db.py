"""Initialize the vintage database schema and role catalogue."""

from src.vintage.main import bootstrap


def main() -> None:
    bootstrap()
    print("Database initialized.")


if __name__ == "__main__":
    main()
