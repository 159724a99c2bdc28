from flask import Blueprint, jsonify, request, current_app
from abgame.errors import StorageUnavailable, ValidationError
from abgame.services.leaderboard import get_store


scores = Blueprint('scores', __name__)


@scores.route('', methods=['GET'])
def list_scores():
    try:
        entries = get_store().list_entries()
    except StorageUnavailable as exc:
        current_app.logger.error(f"[scores-list] {exc}")
        return jsonify({'error': 'Failed to read scores'}), 500
    return jsonify(entries)


@scores.route('', methods=['POST'])
def add_score():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    try:
        entry = get_store().submit(data)
    except ValidationError as exc:
        current_app.logger.info(f"[scores-append] rejected: {exc}")
        return jsonify({'error': 'Missing required fields'}), 400
    except StorageUnavailable as exc:
        current_app.logger.error(f"[scores-append] {exc}")
        return jsonify({'error': 'Failed to save score'}), 500
    current_app.logger.info(
        f"[scores-append] id={entry['id']} name={entry['name']!r} delta={entry['delta']}"
    )
    return jsonify({'success': True, 'entry': entry})
