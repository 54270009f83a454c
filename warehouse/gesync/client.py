"""
HTTP client for the GE dealer portal ASIS JSON exports
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class GESyncError(Exception):
    """Raised when GE data cannot be fetched or parsed"""


class GEClient:
    """
    Fetches JSON documents from the GE ASIS export root.

    Session cookies captured by the portal login (stored on LocationSettings)
    can be passed in and are sent with every request.
    """

    def __init__(self, base_url=None, timeout=None, session=None, cookies=None):
        self.base_url = (base_url or settings.GE_ASIS_BASE_URL).rstrip('/')
        self.timeout = timeout or settings.GE_REQUEST_TIMEOUT
        self.session = session or requests.Session()
        if cookies:
            self.session.cookies.update(self._cookie_dict(cookies))

    @staticmethod
    def _cookie_dict(cookies):
        # Stored either as {name: value} or as a list of browser cookie objects
        if isinstance(cookies, dict):
            return cookies
        return {
            cookie['name']: cookie['value']
            for cookie in cookies
            if isinstance(cookie, dict) and 'name' in cookie and 'value' in cookie
        }

    def url_for(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"

    def fetch_json(self, path):
        url = self.url_for(path)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise GESyncError(f"Failed to fetch {path}: {str(e)}") from e

        if not 200 <= response.status_code < 300:
            raise GESyncError(f"Failed to fetch {path}: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise GESyncError(f"Invalid JSON in {path}: {str(e)}") from e
