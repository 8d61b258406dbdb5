"""SSL certificate handling utilities.

Python's bundled certificates often miss corporate CA certificates, which
breaks HTTPS calls to the OAuth and calendar endpoints behind TLS-inspecting
proxies. truststore injects the OS native certificate store into Python's
SSL context.
"""

import logging
import platform

import truststore

logger = logging.getLogger(__name__)

_ssl_initialized = False


def init_ssl() -> bool:
    """
    Configure SSL to use the OS native certificate store.

    Must run before the first HTTPS connection is made.

    Returns:
        True if truststore was injected, False otherwise.
    """
    global _ssl_initialized

    if _ssl_initialized:
        return True

    try:
        truststore.inject_into_ssl()
    except Exception as e:
        logger.warning(f"Failed to inject truststore: {e}")
        return False

    _ssl_initialized = True
    logger.debug(f"SSL truststore injected for {platform.system()}")
    return True
