"""Internal constants shared across the library."""

BASE_URL = "https://api.unleashnfts.com/api/v2/nft"
USER_AGENT = "brandfeed/1"
API_KEY_HEADER = "x-api-key"

#: Default cache time-to-live in seconds (5 minutes).
DEFAULT_CACHE_TTL: float = 5 * 60

DEFAULT_BLOCKCHAIN = "ethereum"
DEFAULT_TIME_RANGE = "24h"
DEFAULT_PAGE_LIMIT = 100

#: Identifying field shared by every brand endpoint.
BRAND_KEY_FIELDS: tuple[str, ...] = ("brand",)

# ------------------------------------------------------------------
# Domain names (also the store slice names)
# ------------------------------------------------------------------

DOMAIN_BRAND_METRICS = "brand_metrics"
DOMAIN_BRAND_PROFILE = "brand_profile"
DOMAIN_BRAND_CONTRACT_PROFILE = "brand_contract_profile"
DOMAIN_CONTRACT_METRICS = "contract_metrics"
DOMAIN_BRAND_METADATA = "brand_metadata"
DOMAIN_BRAND_CATEGORY = "brand_category"
DOMAIN_COMBINED_BRANDS = "combined_brands"

# Source names inside a combined brand entity.
SOURCE_METADATA = "metadata"
SOURCE_METRICS = "metrics"
SOURCE_PROFILE = "profile"
