from flask import Blueprint, current_app, jsonify, request

from growgrid.errors import GameError, ValidationError
from growgrid.services.games.board import SYMBOLS, count_marks, required_streak, validate_board
from growgrid.services.games.bot import BOT_LEVELS

bot = Blueprint('bot', __name__)


@bot.errorhandler(GameError)
def handle_game_error(exc):
    current_app.extensions['growgrid'].event_log.warning('bot', exc.message, code=exc.code, path=request.path)
    return jsonify({'error': exc.message, 'code': exc.code}), 400


@bot.route('/levels', methods=['GET'])
def list_levels():
    return jsonify([{'level': level, **info} for level, info in BOT_LEVELS.items()]), 200


@bot.route('/move', methods=['POST'])
def bot_move():
    """
    Picks the computer's next move for the posted board.
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    level = data.get('level') or 'expert'
    if level not in BOT_LEVELS:
        raise ValidationError(f'Unknown bot level: {level}')
    player = data.get('player')
    if player not in SYMBOLS:
        raise ValidationError('player must be "X" or "O"')

    board = validate_board(data.get('board'))
    size = len(board)
    win_streak = data.get('winStreak')
    if win_streak is None:
        win_streak = required_streak(size)
    elif isinstance(win_streak, bool) or not isinstance(win_streak, int) or win_streak < 1:
        raise ValidationError('winStreak must be a positive integer')
    if count_marks(board) == size * size:
        raise ValidationError('Board has no empty cells')

    decision = current_app.extensions['growgrid'].bot.decide(board, player, size, win_streak)
    return jsonify({
        'row': decision.row,
        'col': decision.col,
        'reason': decision.reason,
        'gridSize': size,
        'winStreak': win_streak,
    }), 200
