"""
Example 03: Callbacks

This example demonstrates tracing, authorizers and custom SQL functions.
"""

from lite_query import AuthorizationError, AuthorizerResult, Database


def main():
    db = Database()
    db.execute("CREATE TABLE secrets (id INTEGER PRIMARY KEY, value TEXT)")
    db.execute("INSERT INTO secrets (value) VALUES (?)", "hunter2")

    print("=== Callbacks ===\n")

    # Example 1: Trace every statement
    print("1. Trace:")
    db.trace(lambda sql: print(f"   SQL: {sql}"))
    db.execute("SELECT COUNT(*) FROM secrets")
    db.trace(None)
    print()

    # Example 2: Custom function
    print("2. Custom function:")

    def shout(ctx, text):
        ctx.result = f"{text.upper()}!"

    db.create_function("shout", 1, shout, deterministic=True)
    print(f"   {db.get_first_value('SELECT shout(?)', 'hello')}\n")

    # Example 3: Authorizer
    print("3. Authorizer:")
    SQLITE_READ = 20

    def no_secrets(action, table, column, dbname, source):
        if action == SQLITE_READ and table == "secrets":
            return AuthorizerResult.DENY
        return AuthorizerResult.ALLOW

    db.authorizer(no_secrets)
    try:
        db.execute("SELECT value FROM secrets")
    except AuthorizationError as e:
        print(f"   Denied: {e}")
    db.authorizer(None)
    print()

    db.close()


if __name__ == "__main__":
    main()
