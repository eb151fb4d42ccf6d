import logging

from exitrelay.exit_list_cache import ExitListCache, UpdateMode
from exitrelay.own_address_reader import OwnAddressReader, UNKNOWN_ADDRESS
from exitrelay.relay_storage import FileRelayStorage

logger = logging.getLogger(__name__)


def default_store(logger=None):
    '''
    File storage with the list next to the package.
    :param logger: optional logger
    :return: FileRelayStorage with default paths
    '''
    return FileRelayStorage(logger=logger)


def fetch_own_address(override_url=None):
    return OwnAddressReader().get_current_address(override_url=override_url)


def fetch_list(update=UpdateMode.AUTO, store=None, fetcher=None):
    '''
    Returns the set of Tor exit relay addresses.
    :param update: UpdateMode, 'auto', True or False
    :param store: RelayStorage, the default file storage if not passed
    :param fetcher: ExitListFetcher used on refresh
    :return: set of addresses, empty when no data is available
    '''
    cache = ExitListCache(
        store if store is not None else default_store(),
        fetcher=fetcher,
        memo_ttl_in_seconds=0
    )
    return cache.get_list(update=update)


def is_address_relay(address, store=None, fetcher=None):
    try:
        return address in fetch_list(store=store, fetcher=fetcher)
    except Exception as e:
        logger.exception(f'Exit relay lookup failed for {address}: {e!r}')
        return False


def am_i_currently_relay(store=None, fetcher=None, override_url=None):
    try:
        address = fetch_own_address(override_url=override_url)
    except Exception as e:
        logger.exception(f'Own address lookup failed: {e!r}')
        return False

    if address == UNKNOWN_ADDRESS:
        return False
    return is_address_relay(address, store=store, fetcher=fetcher)
