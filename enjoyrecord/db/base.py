from enjoyrecord.db.base_class import Base

# Import ALL models so SQLAlchemy registers them
from enjoyrecord.models.record import Record  # noqa: F401
