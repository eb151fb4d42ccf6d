import logging
from urllib.parse import urlparse

import requests

DEFAULT_OWN_ADDRESS_URL = 'https://postman-echo.com/ip'
UNKNOWN_ADDRESS = 'unknown'


class InvalidUrlError(ValueError):
    pass


class OwnAddressReader(object):

    def __init__(self,
                 url=DEFAULT_OWN_ADDRESS_URL,
                 timeout_in_seconds=10,
                 session=None,
                 logger=None):
        self.url = url
        self.timeout_in_seconds = timeout_in_seconds
        self.session = session
        self.logger = logger if logger else logging.getLogger(self.__class__.__name__)

    @staticmethod
    def validate_url(url):
        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise InvalidUrlError(f'Invalid URL: {url}')
        return url

    def read_address(self, override_url=None):
        url = self.validate_url(override_url or self.url)
        if self.session:
            response = self.session.get(url, timeout=self.timeout_in_seconds)
        else:
            response = requests.get(url, timeout=self.timeout_in_seconds)
        response.raise_for_status()

        address = response.json().get('ip')
        if not isinstance(address, str) or not address:
            raise ValueError(f'No ip field in response from {url}')
        return address

    def get_current_address(self, override_url=None):
        url = override_url or self.url
        try:
            return self.read_address(override_url=override_url)
        except InvalidUrlError as e:
            self.logger.error(str(e))
        except requests.exceptions.Timeout:
            self.logger.error(f'Timeout while getting own address from {url}')
        except requests.exceptions.HTTPError as e:
            self.logger.error(f'HTTP error {e} while getting own address from {url}')
        except requests.exceptions.RequestException as e:
            self.logger.error(f'Request exception {e} while getting own address from {url}')
        except (ValueError, AttributeError) as e:
            self.logger.error(f'Bad response {e} while getting own address from {url}')
        return UNKNOWN_ADDRESS
