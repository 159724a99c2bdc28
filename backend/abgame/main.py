from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({
        'message': 'A-B Effort Game server',
        'roundDurationSec': int(current_app.config.get('ROUND_DURATION_SEC', 15)),
        'rounds': 2,
    })
