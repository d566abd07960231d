"""
Content Kernel — Layout Constants (Default Values)

All size limits and storage-deposit defaults live here as module-level
constants. Runtime deposit parameters are injected into the engine via
RentSchedule (domain_types.py).

All sizes are in bytes. Text lengths are measured on the UTF-8 encoding.
"""

# --- Field bounds ---
TITLE_MIN_BYTES: int = 1
TITLE_MAX_BYTES: int = 100

BODY_MIN_BYTES: int = 1
BODY_MAX_BYTES: int = 1000

# --- Fixed-width fields ---
DISCRIMINATOR_SIZE: int = 8
IDENTITY_SIZE: int = 32       # identities and addresses
LENGTH_PREFIX_SIZE: int = 4   # u32 before each text field
FLAG_SIZE: int = 1            # bool / visibility byte
COUNTER_SIZE: int = 8         # u64
TIMESTAMP_SIZE: int = 8       # i64 unix seconds

# --- Counter bounds ---
U64_MAX: int = 2**64 - 1

# --- Storage deposit (rent exemption) ---
STORAGE_OVERHEAD_BYTES: int = 128
UNITS_PER_BYTE_YEAR: int = 3480
EXEMPTION_YEARS: int = 2

# --- Namespace tags used by the address deriver ---
CONTENT_NAMESPACE: bytes = b"content"
LIKE_NAMESPACE: bytes = b"like"
SAVE_NAMESPACE: bytes = b"save"
