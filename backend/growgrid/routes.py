from flask import Blueprint, current_app, jsonify, request

main = Blueprint('main', __name__)

@main.route('/')
def index():
    services = current_app.extensions['growgrid']
    return jsonify({
        'message': 'Welcome to the growgrid game server!',
        'waiting_players': len(services.matchmaker),
        'active_games': len(services.registry),
    })

@main.route('/api/logs')
def recent_logs():
    """Returns the newest entries of the in-memory event log."""
    limit = request.args.get('limit', type=int)
    entries = current_app.extensions['growgrid'].event_log.recent(limit)
    return jsonify([
        {**entry, 'context': {key: str(value) for key, value in entry['context'].items()}}
        for entry in entries
    ])
