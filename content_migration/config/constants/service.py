from enum import Enum

DEFAULT_CHUNK_SIZE = 200
MAX_CHUNK_SIZE = 2000


class EnvVariables(Enum):
    DELETE_SOURCES = "CONTENT_MIGRATION_DELETE_SOURCES"
    CHUNK_SIZE = "CONTENT_MIGRATION_CHUNK_SIZE"
    ACTING_USER_ID = "CONTENT_MIGRATION_ACTING_USER_ID"
    VISIBILITY = "CONTENT_MIGRATION_VISIBILITY"

    ARANGO_URL = "ARANGO_URL"
    ARANGO_USERNAME = "ARANGO_USERNAME"
    ARANGO_PASSWORD = "ARANGO_PASSWORD"
    ARANGO_DB_NAME = "ARANGO_DB_NAME"
