import structlog

logger = structlog.stdlib.get_logger(__name__)

AUTHENTICATED_IDENTITY = ""


def parse_identities(raw: str) -> list[str]:
    """Namespaces to query for the catalog, in query order.

    The authenticated user always comes first, followed by every configured
    namespace as written. Entries are neither trimmed nor deduplicated;
    repeated namespaces only cause repeated fetches.
    """
    identities = [AUTHENTICATED_IDENTITY]
    if raw != "":
        identities.extend(raw.split(","))

    logger.info("GitHub identities", identities=identities)
    return identities
