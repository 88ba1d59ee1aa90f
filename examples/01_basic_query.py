"""
Example 01: Basic Query Execution

This example demonstrates executing SQL, binding parameters and reading rows
with LiteQuery's Database.
"""

from lite_query import Database


def main():
    with Database(":memory:") as db:
        db.execute_batch("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                active INTEGER DEFAULT 1
            );
            INSERT INTO users (name, email) VALUES ('Alice', 'alice@example.com');
            INSERT INTO users (name, email) VALUES ('Bob', 'bob@example.com');
            INSERT INTO users (name, email, active) VALUES ('Charlie', 'charlie@example.com', 0);
        """)

        print("=== Basic Query Execution ===\n")

        # Example 1: All rows as lists
        print("1. Fetch all users:")
        for row in db.execute("SELECT id, name, email FROM users ORDER BY id"):
            print(f"   {row}")
        print()

        # Example 2: Positional and named parameters
        print("2. Bind parameters:")
        row = db.get_first_row("SELECT name FROM users WHERE id = ?", 2)
        print(f"   Positional: {row}")
        row = db.get_first_row("SELECT name FROM users WHERE email = :email", {"email": "alice@example.com"})
        print(f"   Named: {row}\n")

        # Example 3: Rows as dicts
        print("3. Rows as dicts:")
        db.results_as_hash = True
        for user in db.execute("SELECT name, active FROM users WHERE active = ?", 1):
            print(f"   {user['name']} (active={user['active']})")
        db.results_as_hash = False
        print()

        # Example 4: Column names first
        print("4. execute2 returns the column names first:")
        columns, *rows = db.execute2("SELECT id, name FROM users")
        print(f"   Columns: {columns}, rows: {len(rows)}\n")

        # Example 5: Scalar value and counters
        count = db.get_first_value("SELECT COUNT(*) FROM users")
        print(f"5. Total users: {count}")
        db.execute("UPDATE users SET active = 1")
        print(f"   Rows changed by last update: {db.changes}")
        print(f"   Rows changed since open: {db.total_changes}\n")

        # Example 6: Schema introspection
        print("6. table_info('users'):")
        for column in db.table_info("users"):
            print(f"   {column.name}: {column.type} (default={column.dflt_value!r})")


if __name__ == "__main__":
    main()
