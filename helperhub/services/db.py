import motor.motor_asyncio
from pymongo import ASCENDING
import os
from dotenv import load_dotenv

from helperhub.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()

MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "helperhub_db")

logger.info(f"Initializing MongoDB connection to database: {DB_NAME}")

try:
    client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS)
    db = client[DB_NAME]
    logger.info("MongoDB client initialized successfully")
except Exception as e:
    logger.error(f"Failed to initialize MongoDB client: {e}")
    raise

# Collections
identities_coll = db["identities"]
tokens_coll = db["tokens"]
employers_coll = db["employers"]        # role bucket
job_seekers_coll = db["job_seekers"]    # role bucket
profiles_coll = db["profiles"]
business_info_coll = db["business_info"]
requests_coll = db["service_requests"]
reviews_coll = db["reviews"]

UNIQUE = {"unique": True}

# (collection, keys, create_index options)
INDEXES = [
    (identities_coll, [("user_id", ASCENDING)], UNIQUE),
    (identities_coll, [("email", ASCENDING)], UNIQUE),
    (tokens_coll, [("token", ASCENDING)], UNIQUE),
    # Mongo's TTL monitor drops tokens once expires_at has passed
    (tokens_coll, [("expires_at", ASCENDING)], {"expireAfterSeconds": 0}),
    (employers_coll, [("user_id", ASCENDING)], UNIQUE),
    (job_seekers_coll, [("user_id", ASCENDING)], UNIQUE),
    (profiles_coll, [("user_id", ASCENDING)], UNIQUE),
    (profiles_coll, [("user_type", ASCENDING)], {}),
    (profiles_coll, [("selected_categories", ASCENDING)], {}),
    (business_info_coll, [("user_id", ASCENDING)], UNIQUE),
    (requests_coll, [("request_id", ASCENDING)], UNIQUE),
    (requests_coll, [("employer_id", ASCENDING), ("created_at", ASCENDING)], {}),
    (requests_coll, [("job_seeker_id", ASCENDING), ("created_at", ASCENDING)], {}),
    (reviews_coll, [("review_id", ASCENDING)], UNIQUE),
    (reviews_coll, [("provider_id", ASCENDING)], {}),
]


async def init_indexes():
    """Create the lookup indexes for matching and request listing."""
    logger.info("Starting database index initialization")

    failures = 0
    for coll, keys, options in INDEXES:
        fields = ", ".join(k for k, _ in keys)
        try:
            await coll.create_index(keys, **options)
            logger.debug(f"Created index on {coll.name}.({fields}) {options}")
        except Exception as e:
            if "already exists" in str(e).lower():
                logger.debug(f"Index on {coll.name}.({fields}) already exists")
            else:
                failures += 1
                logger.warning(f"Could not create index on {coll.name}.({fields}): {e}")

    if failures:
        logger.warning(f"Database index initialization finished with {failures} failure(s)")
    else:
        logger.info("Database index initialization completed successfully")


def to_dict(doc):
    if not doc:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return doc
