from eduquest.db.session import engine
from eduquest.db.base import Base
from eduquest.models import *  # Import all models

print("Creating database tables...")
Base.metadata.create_all(bind=engine)
print("✅ All tables created successfully!")
