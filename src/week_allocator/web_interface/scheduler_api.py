"""
Flask view functions for the allocator API.
Routes are registered on the app in app.py.
"""

import logging
import os

from flask import jsonify, request

from ..algorithm.allocator import AllocatorConfig, WeeklyAllocator
from ..algorithm.annealing import AnnealingParameters
from ..data_parsing.category_parser import parse_categories
from ..exceptions import InvalidInputError

logger = logging.getLogger(__name__)


def _time_limit_from_env():
    """Wall-clock budget for one request, from ALLOCATOR_TIME_LIMIT (seconds)."""
    value = os.environ.get('ALLOCATOR_TIME_LIMIT')
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring invalid ALLOCATOR_TIME_LIMIT=%r", value)
        return None


def build_config(annealing_overrides) -> AllocatorConfig:
    """Allocator config for a request. The env time limit caps any limit the request asks for."""
    if annealing_overrides is not None and not isinstance(annealing_overrides, dict):
        raise ValueError("'annealing' must be an object")
    overrides = dict(annealing_overrides or {})
    ceiling = _time_limit_from_env()
    if ceiling is not None:
        requested = overrides.get('time_limit')
        overrides['time_limit'] = ceiling if requested is None else min(ceiling, float(requested))
    return AllocatorConfig(annealing=AnnealingParameters.from_dict(overrides))


def generate_schedule():
    """Handle a schedule generation request."""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

        categories_data = data.get('categories', [])
        if not categories_data:
            return jsonify({'success': False, 'error': 'No categories provided'}), 400

        try:
            categories = parse_categories(categories_data)
        except InvalidInputError as e:
            return jsonify({'success': False, 'error': f'Invalid category data: {str(e)}'}), 400

        seed = data.get('seed')
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            return jsonify({'success': False, 'error': 'seed must be an integer'}), 400

        try:
            config = build_config(data.get('annealing'))
        except (TypeError, ValueError) as e:
            return jsonify({'success': False, 'error': f'Invalid annealing parameters: {str(e)}'}), 400

        logger.info("Generating schedule for %d categories (seed=%s)", len(categories), seed)
        try:
            result = WeeklyAllocator(config=config, rng=seed).allocate(categories)
        except InvalidInputError as e:
            return jsonify({'success': False, 'error': f'Invalid category data: {str(e)}'}), 400

        payload = result.to_dict()
        payload['success'] = True
        payload['message'] = f'Schedule generated ({payload["status"]}). Score: {result.score:.1f}'
        return jsonify(payload)

    except Exception as e:
        logger.exception("Error generating schedule")
        return jsonify({'success': False, 'error': f'An error occurred: {str(e)}'}), 500


def health_check():
    """Health check endpoint."""
    return jsonify({'status': 'healthy', 'message': 'Week allocator API is running'})
