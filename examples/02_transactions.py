"""
Example 02: Transactions

This example demonstrates transaction management with automatic rollback on errors.
"""

from lite_query import ConstraintError, Database, DatabaseConfig, TransactionMode
import tempfile
from pathlib import Path


def main():
    # Set up database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    config = DatabaseConfig(driver="sqlite", database=db_path)
    db = Database.from_config(config)
    db.execute("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE
        )
    """)
    db.execute("""
        CREATE TABLE audit_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            action TEXT NOT NULL,
            timestamp DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """)

    print("=== Transaction Management ===\n")

    # Example 1: Successful transaction
    print("1. Successful transaction:")
    with db.transaction():
        db.execute("INSERT INTO users (name, email) VALUES (?, ?)", "Alice", "alice@example.com")
        db.execute("INSERT INTO audit_log (action) VALUES (?)", "user_created")
        # Commits automatically on exit
    count = db.get_first_value("SELECT COUNT(*) FROM users")
    print(f"   Users after commit: {count}\n")

    # Example 2: Transaction with rollback on error
    print("2. Transaction with error (automatic rollback):")
    try:
        with db.transaction():
            db.execute("INSERT INTO users (name, email) VALUES (?, ?)", "Bob", "bob@example.com")
            # This will fail due to duplicate email
            db.execute("INSERT INTO users (name, email) VALUES (?, ?)", "Charlie", "alice@example.com")
    except ConstraintError as e:
        print(f"   Error occurred: {type(e).__name__}: {e}")
        print("   Transaction was rolled back automatically\n")

    count = db.get_first_value("SELECT COUNT(*) FROM users")
    print(f"   Users after rollback: {count} (Bob was not added)\n")

    # Example 3: Explicit begin/commit with an immediate lock
    print("3. Explicit begin/commit:")
    db.begin(TransactionMode.IMMEDIATE)
    print(f"   Active: {db.transaction_active}")
    db.execute("INSERT INTO users (name, email) VALUES (?, ?)", "Dave", "dave@example.com")
    db.commit()
    print(f"   Active after commit: {db.transaction_active}\n")

    # Example 4: The engine can end a transaction on its own
    print("4. INSERT OR ROLLBACK ends the transaction:")
    db.begin()
    try:
        db.execute("INSERT OR ROLLBACK INTO users (name, email) VALUES (?, ?)", "Eve", "dave@example.com")
    except ConstraintError:
        pass
    print(f"   Active after conflict: {db.transaction_active}\n")

    # Clean up
    db.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
