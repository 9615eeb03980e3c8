# src/libs/autocomplete-common/autocomplete_common/db_base.py
from sqlalchemy.orm import declarative_base

# Host applications declare their searchable entities on this Base so the
# autocomplete service can recognise them by class name.
Base = declarative_base()
