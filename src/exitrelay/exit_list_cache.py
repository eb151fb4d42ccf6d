import logging
import time
from enum import Enum

from cachetools import TTLCache

from exitrelay.exit_list_fetcher import ExitListFetcher
from exitrelay.relay_storage import StorageWriteError


class UpdateMode(Enum):
    AUTO = 'auto'
    FORCE = 'true'
    NEVER = 'false'

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        if value is True:
            return cls.FORCE
        if value is False:
            return cls.NEVER
        if isinstance(value, str):
            return cls(value.strip().lower())
        raise ValueError(f'Unsupported update mode {value!r}')


class CacheState(Enum):
    FRESH = 'fresh'
    STALE = 'stale'
    EMPTY = 'empty'


def now_in_ms():
    return int(time.time() * 1000)


class ExitListCache(object):
    """
    Serves the exit relay list from a RelayStorage and refreshes it
    from the fetcher when the stored copy is older than max_age_in_hours.

    The last fresh result is kept in a short TTL memo so bursts of
    lookups do not hit the storage every time.
    """

    MEMO_KEY = 'addresses'

    def __init__(self,
                 store,
                 fetcher=None,
                 max_age_in_hours=24,
                 memo_ttl_in_seconds=60,
                 clock=None,
                 logger=None):
        self.store = store
        self.logger = logger if logger else logging.getLogger(self.__class__.__name__)
        self.fetcher = fetcher if fetcher else ExitListFetcher(logger=self.logger)
        self.max_age_in_ms = int(max_age_in_hours * 60 * 60 * 1000)
        self.clock = clock if clock else now_in_ms
        self.memo = None
        if memo_ttl_in_seconds > 0:
            self.memo = TTLCache(maxsize=1, ttl=memo_ttl_in_seconds,
                                 timer=lambda: self.clock() / 1000.0)

    def _state(self, addresses, timestamp):
        if len(addresses) == 0:
            return CacheState.EMPTY
        if timestamp != 0 and self.clock() - timestamp <= self.max_age_in_ms:
            return CacheState.FRESH
        return CacheState.STALE

    def state(self):
        return self._state(self.store.read_addresses(), self.store.read_timestamp())

    def invalidate(self):
        if self.memo is not None:
            self.memo.clear()

    def _remember(self, addresses, timestamp):
        # stale sets are not memoized, a later AUTO call must still refresh them
        if self.memo is not None and self._state(addresses, timestamp) == CacheState.FRESH:
            self.memo[self.MEMO_KEY] = set(addresses)

    def refresh(self):
        """
        Fetches the latest list and persists it together with the current time.
        If the fetch fails the storage is left untouched and its current
        content is returned.
        :raises StorageWriteError: the list was fetched but could not be saved,
        the fetched addresses are attached to the error
        """
        addresses = self.fetcher.fetch_latest()
        if len(addresses) == 0:
            self.logger.warning('Exit list refresh failed, keeping the stored list.')
            return self.store.read_addresses()

        try:
            self.store.write_addresses(addresses)
            self.store.write_timestamp(self.clock())
        except StorageWriteError as e:
            e.addresses = set(addresses)
            raise

        self.logger.info(f'Exit list refreshed. {len(addresses)} IPs stored.')
        return set(addresses)

    def get_list(self, update=UpdateMode.AUTO):
        update = UpdateMode.parse(update)

        if update != UpdateMode.FORCE and self.memo is not None:
            addresses = self.memo.get(self.MEMO_KEY)
            if addresses is not None:
                return set(addresses)

        addresses = self.store.read_addresses()
        timestamp = self.store.read_timestamp()
        if update == UpdateMode.NEVER:
            self._remember(addresses, timestamp)
            return addresses

        if update == UpdateMode.AUTO and self._state(addresses, timestamp) == CacheState.FRESH:
            self._remember(addresses, timestamp)
            return addresses

        try:
            addresses = self.refresh()
        except StorageWriteError as e:
            self.logger.error(f'Exit list fetched but not saved: {e}')
            return set(e.addresses)

        self._remember(addresses, self.store.read_timestamp())
        return addresses

    def lookup(self, address, update=UpdateMode.AUTO):
        return address in self.get_list(update=update)
