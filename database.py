# database.py
# MongoDB setup: connection, collections and the indexes the app relies on
import logging

import gridfs
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from errors import PersistenceFailure

logger = logging.getLogger(__name__)

USERS = "users"
WASTE_EVENTS = "waste_identifications"
ACCOUNTS = "accounts"
SCAN_IMAGES = "scan_images"


def connect(settings):
    try:
        client = MongoClient(settings.mongo_uri, serverSelectionTimeoutMS=5000)
        # Test the connection
        client.server_info()
    except PyMongoError as e:
        logger.error("Error connecting to MongoDB: %s", e)
        raise
    logger.info("Successfully connected to MongoDB (%s)", settings.mongo_db)
    return client[settings.mongo_db]


def ensure_indexes(db):
    db[USERS].create_index([("points", DESCENDING), ("_id", ASCENDING)])
    db[ACCOUNTS].create_index("email", unique=True)
    db[ACCOUNTS].create_index("uid", unique=True)
    db[WASTE_EVENTS].create_index([("userId", ASCENDING), ("timestamp", DESCENDING)])


class ImageStore:
    """Keeps the scanned images in GridFS so waste events can reference them."""

    def __init__(self, db):
        self.fs = gridfs.GridFS(db, collection=SCAN_IMAGES)

    def put(self, data, content_type, user_id):
        try:
            file_id = self.fs.put(data, contentType=content_type, userId=user_id)
        except PyMongoError as e:
            raise PersistenceFailure(f"could not store scan image: {e}") from e
        return str(file_id)
