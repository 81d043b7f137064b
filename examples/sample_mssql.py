from dataclasses import dataclass
from dotenv import load_dotenv
import os

from fluentsql import FluentSqlBuilder, load_settings_from_env


@dataclass
class User:
    id: int
    name: str
    age: int | None = None


def main():
    # Load environment variables from .env file
    load_dotenv()
    load_settings_from_env()

    # Build connection string from environment variables
    db_host = os.getenv("MSSQL_HOST", "127.0.0.1")
    db_port = os.getenv("MSSQL_PORT", "1433")
    db_name = os.getenv("MSSQL_DB", "fluentsql")
    db_user = os.getenv("MSSQL_USER", "sa")
    db_password = os.getenv("MSSQL_PASSWORD", "password")
    db_driver = os.getenv("MSSQL_DRIVER", "ODBC Driver 18 for SQL Server")

    connection_string = (
        f"mssql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        f"?driver={db_driver.replace(' ', '+')}&encrypt=no&trust_server_certificate=yes"
    )

    with FluentSqlBuilder.connect(connection_string) as sql:
        print("Creating table 'sample_users'...")
        sql.execute_custom_non_query("DROP TABLE IF EXISTS sample_users")
        sql.execute_custom_non_query(
            "CREATE TABLE sample_users (id INT PRIMARY KEY, name NVARCHAR(255) NOT NULL, age INT)"
        )

        print("Inserting sample data...")
        for user_id, name, age in [(1, "Alice", 30), (2, "Bob", 25), (3, "Charlie", 35)]:
            sql.insert_into("sample_users").values({"id": user_id, "name": name, "age": age}).execute()

        print("Querying users older than 26...")
        users = (
            sql.select("id", "name", "age")
            .from_("sample_users")
            .where("age > @age", {"age": 26})
            .order_by("age")
            .ascending()
            .to_mapped_object(User)
        )
        for user in users:
            print(f"  {user}")

        affected = sql.update("sample_users").set({"age": 26}).where("name = @name", {"name": "Bob"}).execute()
        print(f"Updated {affected} row(s).")

        print("Dropping table...")
        sql.execute_custom_non_query("DROP TABLE sample_users")

if __name__ == "__main__":
    main()
