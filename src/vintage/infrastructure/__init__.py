"""Infrastructure adapters: transactions and blob storage."""
