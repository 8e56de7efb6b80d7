from specgraph.db.models import Base

# Create database and tables if they don't exist
from specgraph.db.init_db import init_database
