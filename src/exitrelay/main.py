import argparse
import logging
import os
import sys
from datetime import datetime, timezone

from exitrelay.exit_list_cache import ExitListCache, UpdateMode
from exitrelay.exit_list_fetcher import ExitListFetcher, TOR_BULK_EXIT_LIST_URL
from exitrelay.own_address_reader import OwnAddressReader, DEFAULT_OWN_ADDRESS_URL, UNKNOWN_ADDRESS
from exitrelay.relay_storage import FileRelayStorage


def get_logger(
        name, logging_level=logging.DEBUG
):
    '''
    Creates a logger that logs to console
    :param str name: the logger name
    :param int logging_level: the logging level
    :return: the initialized logger
    :rtype: logger
    '''
    logger = logging.getLogger(name)
    logger.setLevel(logging_level)

    formatter = logging.Formatter(
        '%(asctime)s %(name)s.%(funcName)s +%(lineno)s: %(levelname)-8s'
        ' [%(process)d] %(message)s'
    )

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
    return logger


def build_cache(logger):
    store = FileRelayStorage(
        list_path=os.environ.get('EXIT_LIST_PATH'),
        timestamp_path=os.environ.get('EXIT_LIST_TIMESTAMP_PATH'),
        logger=logger
    )
    fetcher = ExitListFetcher(
        url=os.environ.get('EXIT_LIST_URL', TOR_BULK_EXIT_LIST_URL),
        timeout_in_seconds=float(os.environ.get('EXIT_LIST_TIMEOUT', 10)),
        logger=logger
    )
    return ExitListCache(
        store,
        fetcher=fetcher,
        max_age_in_hours=float(os.environ.get('EXIT_LIST_MAX_AGE_HOURS', 24)),
        memo_ttl_in_seconds=0,
        logger=logger
    )


def main(argv=None):
    '''
    Exit relay commandline arguments
    :return: process exit code
    '''
    logger = get_logger(
        'exitrelay',
        logging_level=getattr(logging, os.environ.get('LOG_LEVEL', 'WARNING').upper(), logging.WARNING)
    )

    parser = argparse.ArgumentParser()
    parser.add_argument(
        'command',
        help='Command to run: list, check, me, refresh, state',
    )
    parser.add_argument('address', nargs='?', help='IPv4 address for the check command')
    parser.add_argument(
        '--update',
        default='auto',
        help='Update mode: auto, true, false',
    )
    args = parser.parse_args(argv)

    try:
        update = UpdateMode.parse(args.update)
    except ValueError:
        logger.error(f'Update mode "{args.update}" is not supported.')
        return 2

    cache = build_cache(logger)

    if args.command == 'list':
        for address in sorted(cache.get_list(update=update)):
            print(address)
    elif args.command == 'check':
        if not args.address:
            logger.error('The check command needs an address.')
            return 2
        print(cache.lookup(args.address, update=update))
    elif args.command == 'me':
        reader = OwnAddressReader(
            url=os.environ.get('OWN_ADDRESS_URL', DEFAULT_OWN_ADDRESS_URL),
            logger=logger
        )
        address = reader.get_current_address()
        print(address)
        print(address != UNKNOWN_ADDRESS and cache.lookup(address, update=update))
    elif args.command == 'refresh':
        print(len(cache.get_list(update=UpdateMode.FORCE)))
    elif args.command == 'state':
        timestamp = cache.store.read_timestamp()
        refreshed = datetime.fromtimestamp(timestamp / 1000.0, tz=timezone.utc) if timestamp else 'never'
        print(f'{cache.state().value} {refreshed}')
    else:
        logger.error(f'Command "{args.command}" is not supported.')
        return 2

    return 0


if __name__ == '__main__':
    sys.exit(main())
