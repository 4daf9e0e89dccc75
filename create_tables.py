from lexideck.db.base import Base
from lexideck.db.models import DeckDocumentRecord  # noqa: F401
from lexideck.db.session import engine

if __name__ == "__main__":
    print("Creating deck tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created.")
