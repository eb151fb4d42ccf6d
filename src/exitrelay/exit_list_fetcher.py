import logging
import re

import requests

TOR_BULK_EXIT_LIST_URL = 'https://check.torproject.org/torbulkexitlist'

IPV4_OCTET = re.compile(r'[0-9]{1,3}')

# non-address fields of the detailed exit-addresses document
EXIT_ADDRESSES_FIELDS = ('ExitNode', 'Published', 'LastStatus')


def is_valid_ipv4(candidate):
    parts = candidate.split('.')
    if len(parts) != 4:
        return False
    for part in parts:
        if not IPV4_OCTET.fullmatch(part) or int(part) > 255:
            return False
    return True


def parse_exit_list(text):
    """
    Parses the bulk exit list (one address per line). Lines of the detailed
    exit-addresses document ('ExitAddress <ip> <date> <time>') are accepted too.
    :param str text: response body
    :return: (set of valid addresses, number of rejected lines)
    """
    addresses = set()
    rejected = 0
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        tokens = line.split()
        if tokens[0] == 'ExitAddress':
            line = tokens[1] if len(tokens) > 1 else ''
        elif tokens[0] in EXIT_ADDRESSES_FIELDS:
            continue

        if is_valid_ipv4(line):
            addresses.add(line)
        else:
            rejected += 1
    return addresses, rejected


class ExitListFetcher(object):

    def __init__(self,
                 url=TOR_BULK_EXIT_LIST_URL,
                 timeout_in_seconds=10,
                 session=None,
                 logger=None):
        self.url = url
        self.timeout_in_seconds = timeout_in_seconds
        self.session = session
        self.logger = logger if logger else logging.getLogger(self.__class__.__name__)

    def _get(self):
        if self.session:
            return self.session.get(self.url, timeout=self.timeout_in_seconds)
        return requests.get(self.url, timeout=self.timeout_in_seconds)

    def fetch_latest(self):
        """
        Downloads and validates the exit relay list.
        Returns an empty set on any failure, the caller keeps its cached data.
        """
        try:
            response = self._get()
            response.raise_for_status()
        except requests.exceptions.Timeout:
            self.logger.error(f'Timeout while fetching exit list from {self.url}')
            return set()
        except requests.exceptions.HTTPError as e:
            self.logger.error(f'HTTP error {e} while fetching exit list from {self.url}')
            return set()
        except requests.exceptions.RequestException as e:
            self.logger.error(f'Request exception {e} while fetching exit list from {self.url}')
            return set()

        addresses, rejected = parse_exit_list(response.text)
        if rejected:
            self.logger.warning(f'Skipped {rejected} invalid lines in exit list from {self.url}')

        if len(addresses) == 0:
            self.logger.error(f'No valid addresses in exit list from {self.url}')
            return set()

        self.logger.info(f'Exit list fetched. {len(addresses)} IPs loaded.')
        return addresses
