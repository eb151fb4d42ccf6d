import logging
import os
import tempfile


class StorageWriteError(Exception):

    def __init__(self, message, addresses=None):
        super().__init__(message)
        self.addresses = addresses


class RelayStorage(object):
    """
    Storage of the exit relay address set and the time of its last refresh.
    Reads never raise: a missing or unreadable record reads as an empty set
    and a zero timestamp. Writes raise StorageWriteError.
    """

    def read_addresses(self):
        raise NotImplementedError()

    def write_addresses(self, addresses):
        raise NotImplementedError()

    def read_timestamp(self):
        raise NotImplementedError()

    def write_timestamp(self, timestamp):
        raise NotImplementedError()


class FileRelayStorage(RelayStorage):

    def __init__(self,
                 list_path=None,
                 timestamp_path=None,
                 logger=None):
        super().__init__()
        here = os.path.dirname(os.path.abspath(__file__))
        self.list_path = list_path or os.path.join(here, 'torlist.txt')
        self.timestamp_path = timestamp_path or os.path.join(here, 'torlist.txt.timestamp')
        self.logger = logger if logger else logging.getLogger(self.__class__.__name__)

    def _read(self, path):
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def _write(self, path, data):
        folder = os.path.dirname(os.path.abspath(path))
        try:
            os.makedirs(folder, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=folder, prefix='.' + os.path.basename(path))
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(data)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            self.logger.error(f'Error saving {path}: {e}')
            raise StorageWriteError(f'Cannot write {path}: {e}') from e

    def read_addresses(self):
        try:
            data = self._read(self.list_path)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.debug(f'Cannot read relay list from {self.list_path}: {e}')
            return set()
        return set([line.strip() for line in data.splitlines() if line.strip()])

    def write_addresses(self, addresses):
        self._write(self.list_path, '\n'.join(sorted(addresses)))

    def read_timestamp(self):
        try:
            return int(self._read(self.timestamp_path).strip())
        except (OSError, UnicodeDecodeError, ValueError) as e:
            self.logger.debug(f'Cannot read timestamp from {self.timestamp_path}: {e}')
            return 0

    def write_timestamp(self, timestamp):
        self._write(self.timestamp_path, str(int(timestamp)))


class MemoryRelayStorage(RelayStorage):

    def __init__(self, addresses=None, timestamp=0):
        super().__init__()
        self.addresses = set(addresses) if addresses else set()
        self.timestamp = int(timestamp)

    def read_addresses(self):
        return set(self.addresses)

    def write_addresses(self, addresses):
        self.addresses = set(addresses)

    def read_timestamp(self):
        return self.timestamp

    def write_timestamp(self, timestamp):
        self.timestamp = int(timestamp)
