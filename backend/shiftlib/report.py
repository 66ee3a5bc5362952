"""
Top-workplaces report.

Fetches every workplace (sharded listing) and every shift (flat listing) from
the API, then ranks active workplaces by number of shifts.

Usage:
    API_BASE_URL=http://localhost:8000/api top-workplaces [--top N] [--page-size N]
"""
import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import Iterable, List, Optional

from dotenv import load_dotenv

from .client import ListingClient
from .config import ReportConfig
from .errors import ConfigError, TransportFailure
from .log import configure_logger
from .traversal import traverse_flat, traverse_sharded
from .types import ShiftList, WorkplaceList

_logger = logging.getLogger('shiftlib.report')

# Workplace.status value for an operational workplace; every other value is inactive
ACTIVE_STATUS = 0


@dataclass(frozen=True)
class WorkplaceShiftCount:
    name: str
    shifts: int

    def to_dict(self) -> dict:
        return {'name': self.name, 'shifts': self.shifts}


def top_workplaces(workplaces: Iterable[dict], shifts: Iterable[dict], n: int) -> List[WorkplaceShiftCount]:
    """Rank active workplaces by shift count, highest first, and keep the first *n*.

    Workplaces with equal counts keep their input order.
    """
    active = [wp for wp in workplaces if wp.get('status') == ACTIVE_STATUS]

    shift_counts: dict = {}
    for shift in shifts:
        workplace_id = shift.get('workplaceId')
        if workplace_id:
            shift_counts[workplace_id] = shift_counts.get(workplace_id, 0) + 1

    ranked = [
        WorkplaceShiftCount(name=wp.get('name'), shifts=shift_counts.get(wp.get('id'), 0))
        for wp in active
    ]
    # sorted() is stable
    ranked = sorted(ranked, key=lambda r: r.shifts, reverse=True)
    return ranked[:max(n, 0)]


def fetch_all_workplaces(client: ListingClient, page_size: int) -> WorkplaceList:
    return traverse_sharded(client.sharded_page_fetcher('workplaces'), page_size)


def fetch_all_shifts(client: ListingClient, page_size: int) -> ShiftList:
    return traverse_flat(client.page_fetcher('shifts'), page_size)


def get_top_workplaces(config: ReportConfig, client: Optional[ListingClient] = None) -> List[WorkplaceShiftCount]:
    """Run both traversals against the API and rank the result."""
    own_client = client is None
    if own_client:
        client = ListingClient(config.base_url, timeout=config.timeout)
    try:
        workplaces = fetch_all_workplaces(client, config.page_size)
        shifts = fetch_all_shifts(client, config.page_size)
    finally:
        if own_client:
            client.close()
    _logger.info("Fetched %d workplaces and %d shifts", len(workplaces), len(shifts))
    return top_workplaces(workplaces, shifts, config.top_n)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='top-workplaces',
        description='Print the active workplaces with the most shifts.',
    )
    parser.add_argument('--base-url', help='API root (default: $API_BASE_URL)')
    parser.add_argument('--page-size', type=int, help='Listing page size (default: $PAGE_SIZE or 10)')
    parser.add_argument('--top', type=int, dest='top_n', help='Number of workplaces (default: $TOP_N or 3)')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    configure_logger('shiftlib', os.environ.get('SHIFTS_LOG_LEVEL', 'WARNING'))
    args = _parse_args(argv)
    try:
        config = ReportConfig.from_env(
            base_url=args.base_url, page_size=args.page_size, top_n=args.top_n,
        )
        result = get_top_workplaces(config)
    except ConfigError as e:
        _logger.error("Configuration error: %s", e)
        return 1
    except TransportFailure as e:
        _logger.error("Failed to fetch listings: %s", e)
        return 1
    print(json.dumps([r.to_dict() for r in result], indent=2, ensure_ascii=False))
    return 0


if __name__ == '__main__':
    sys.exit(main())
