"""
HTTP API Lambda handler for the site map.

- GET /sitemap.xml - XML sitemap listing the site root
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional
from xml.sax.saxutils import escape

from cosmic_horoscope.config import get_settings
from cosmic_horoscope.exceptions import HoroscopeError
from cosmic_horoscope.utils.error_codes import ErrorCode
from cosmic_horoscope.utils.response_builder import error_response, text_response
from cosmic_horoscope.utils.structured_logger import get_structured_logger

SITEMAP_PATH = '/sitemap.xml'
SITEMAP_CONTENT_TYPE = 'application/xml; charset=utf-8'

SITEMAP_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
<url>
<loc>{loc}</loc>
<lastmod>{lastmod}</lastmod>
<changefreq>daily</changefreq>
<priority>1.0</priority>
</url>
</urlset>"""


def build_sitemap(site_url: str, today: Optional[date] = None) -> str:
    """
    Build the sitemap document.

    Args:
        site_url: Canonical site URL
        today: Last modification date (default: today in UTC)

    Returns:
        Sitemap XML
    """
    today = today or datetime.now(timezone.utc).date()
    return SITEMAP_TEMPLATE.format(loc=escape(site_url), lastmod=today.isoformat())


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """HTTP API Lambda handler for GET /sitemap.xml."""
    request_context = event.get('requestContext', {})
    http = request_context.get('http', {})
    http_method = http.get('method', '')
    path = http.get('path', '')

    logger = get_structured_logger('SitemapHandler', request_id=request_context.get('requestId'))

    if path != SITEMAP_PATH:
        return error_response(ErrorCode.REQUEST_NOT_FOUND)

    if http_method != 'GET':
        return error_response(ErrorCode.REQUEST_METHOD_NOT_ALLOWED)

    try:
        sitemap = build_sitemap(get_settings().site_url)
    except HoroscopeError as e:
        logger.error(f'Sitemap failed: {e.message}', operation='sitemap', error=e)
        return error_response(e.error_code, e.message)

    logger.debug('Sitemap served', operation='sitemap', length=len(sitemap))

    return text_response(
        sitemap,
        SITEMAP_CONTENT_TYPE,
        headers={'X-Content-Type-Options': 'nosniff'}
    )
