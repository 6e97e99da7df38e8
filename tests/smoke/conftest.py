"""Fixtures for post-deployment smoke tests.

Pass the URLs printed at the end of a deployment:

    pytest tests/smoke --cdn-url https://d1.cloudfront.net --api-url https://abc.execute-api...

Without them every smoke test is skipped.
"""

import httpx
import pytest


@pytest.fixture
def cdn_url(request):
    url = request.config.getoption("--cdn-url")
    if not url:
        pytest.skip("--cdn-url not given")
    return url


@pytest.fixture
def api_url(request):
    url = request.config.getoption("--api-url")
    if not url:
        pytest.skip("--api-url not given")
    return url


@pytest.fixture
def cdn(cdn_url):
    """HTTP client for the CloudFront distribution."""
    with httpx.Client(base_url=cdn_url, timeout=30.0, follow_redirects=True) as client:
        yield client
