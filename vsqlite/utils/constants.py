"""Constants used throughout the vsqlite package."""

PROMPT = "sqlite> "
HISTORY_PROMPT = "\U0001F50D history> "
WINDOW_TITLE = "vsqlite"

# History file layout: every entry is preceded by this line
HISTORY_DELIMITER = "---"
DEFAULT_HISTORY_FILE = "~/.vsqlite_history"

# Meta-command tokens recognised by the router
EXIT_COMMAND = "exit"
EXPANDED_TOGGLE = "\\x"
JSON_TOGGLE = "\\j"
DESCRIBE_PREFIX = "\\d "
DESCRIBE_COMMANDS = ("\\d", "\\d;")
INDEX_LIST_COMMANDS = ("\\di", "\\di;")
SCHEMA_COMMAND = ".schema"

NULL_MARKER = "NULL"
HEX_PREFIX = "\\x"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Expanded display
RECORD_RULE_WIDTH = 24
NO_ROWS_MESSAGE = "No rows found."

SUPPORTED_ENGINES = ['sqlite', 'duckdb']
DUCKDB_EXTENSIONS = ('.duckdb', '.ddb')
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
