from sqlalchemy import BigInteger, Integer

# Surrogate keys: BIGINT in production, INTEGER on SQLite so rowid autoincrement works.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")
