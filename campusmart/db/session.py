from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from campusmart.core.config import settings

client = AsyncIOMotorClient(settings.MONGO_URL, maxPoolSize=10, minPoolSize=10)
db = client[settings.DB_NAME]

def get_db():
    return db

def get_client():
    return client

async def ensure_indexes(database):
    """Create the indexes the workflow relies on; safe to run on every startup"""
    # One cart line per buyer and product, even when two upserts race
    await database.cart.create_index([("user_id", ASCENDING), ("product_id", ASCENDING)], unique=True)
    await database.notifications.create_index([("user_id", ASCENDING), ("date", DESCENDING)])
    await database.purchases.create_index([("buyer_id", ASCENDING), ("purchase_date", DESCENDING)])
    await database.purchases.create_index([("seller_id", ASCENDING), ("status", ASCENDING)])

def close_mongo_connection():
    client.close()
