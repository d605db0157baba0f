"""
TeamCity REST client
Reads the build queue size and the agent list from a TeamCity server
"""

import requests
from typing import Optional

from .exceptions import TransportError, UnexpectedStatusError
from .models import FleetSnapshot, QueueSnapshot
from .parsing import RESPONSE_FORMATS, ResponseFormat, parse_fleet, parse_queue

BUILD_QUEUE_PATH = '/app/rest/buildQueue'
AGENTS_PATH = '/app/rest/agents'
AGENT_FIELDS = 'count,agent(id,enabled,connected,build)'

_ACCEPT = {
    'xml': 'application/xml',
    'json': 'application/json',
}


class TeamCityClient:
    """
    Minimal TeamCity REST client

    Every call is a single attempt: no retries, no caching.

    Usage:
        with TeamCityClient('https://teamcity.example.com', token='...') as client:
            queue = client.fetch_queue_count()
            fleet = client.fetch_fleet_snapshot()
    """

    def __init__(
        self,
        server_url: str,
        token: Optional[str] = None,
        timeout: float = 30,
        response_format: ResponseFormat = 'xml',
        auth_header: Optional[str] = None,
    ):
        if response_format not in RESPONSE_FORMATS:
            raise ValueError(f'Unsupported response format: {response_format!r}')

        self.server_url = server_url.rstrip('/')
        self.timeout = timeout
        self.response_format = response_format
        self.session = requests.Session()
        self.session.headers['Accept'] = _ACCEPT[response_format]

        if auth_header is None and token:
            auth_header = f'Bearer {token}'
        if auth_header:
            self.session.headers['Authorization'] = auth_header

    def _get(self, path: str, what: str, params: Optional[dict] = None) -> bytes:
        """GET a path and return the body of a successful response"""
        url = f'{self.server_url}{path}'

        try:
            response = self.session.request(
                'GET',
                url,
                params=params,
                timeout=self.timeout
            )
        except requests.Timeout as e:
            raise TransportError(f'Request to {url} timed out after {self.timeout}s') from e
        except requests.RequestException as e:
            raise TransportError(f'Request to {url} failed: {e}') from e

        if not 200 <= response.status_code < 300:
            raise UnexpectedStatusError(
                f'Failed to get {what}', response.status_code, url=url
            )

        return response.content

    def fetch_queue_count(self) -> QueueSnapshot:
        """Get the number of builds waiting in the queue"""
        body = self._get(BUILD_QUEUE_PATH, 'build queue')
        return parse_queue(body, self.response_format)

    def fetch_fleet_snapshot(self) -> FleetSnapshot:
        """Get the agent count and the enabled/connected/build projection of every agent"""
        body = self._get(AGENTS_PATH, 'agents', params={'fields': AGENT_FIELDS})
        return parse_fleet(body, self.response_format)

    def close(self):
        """Close the session"""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def fetch_queue_count(base_url: str, auth_header: str, timeout: float = 30) -> QueueSnapshot:
    """Fetch the build queue size with a one-shot client"""
    with TeamCityClient(base_url, timeout=timeout, auth_header=auth_header) as client:
        return client.fetch_queue_count()


def fetch_fleet_snapshot(base_url: str, auth_header: str, timeout: float = 30) -> FleetSnapshot:
    """Fetch the agent list with a one-shot client"""
    with TeamCityClient(base_url, timeout=timeout, auth_header=auth_header) as client:
        return client.fetch_fleet_snapshot()
