from enum import StrEnum


class CommandType(StrEnum):
    text = "text"  # plain SQL statement
    stored_procedure = "stored_procedure"
    table_direct = "table_direct"  # sql holds a table name
