from typing import Any, Dict, Optional, Tuple

from flask import request
from flask_socketio import emit

from growgrid.errors import PlayerError, ValidationError
from growgrid.event_log import new_request_id
from growgrid.models import TERMINAL_DISCONNECT, TERMINAL_WIN, build_move_updates
from growgrid.services.games.board import find_winning_line
from growgrid.services.games.runtime import GameServices


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _parse_move(data: Any) -> Tuple[str, Any, Any, bool]:
    if not isinstance(data, dict):
        raise ValidationError('Move payload must be an object')
    game_id = data.get('gameId')
    if not game_id or not isinstance(game_id, str):
        raise ValidationError('gameId is required')
    if 'row' not in data or 'col' not in data:
        raise ValidationError('row and col are required')
    return game_id, data['row'], data['col'], bool(data.get('clientAssertedWin', False))


class SessionTransport:
    """Socket.IO event handlers binding connections to game sessions.

    Every handler catches its own errors and reports them to the calling
    connection as an `error` event; the connection is never dropped.
    """

    def __init__(self, socketio, services: GameServices, namespace: str = '/ws'):
        self.socketio = socketio
        self.services = services
        self.namespace = namespace

    @property
    def log(self):
        return self.services.event_log

    def handle_connect(self, auth=None):
        sid = _get_sid()
        self.log.info('socket', 'Client connected', sid=sid)
        emit('connected', {'connectionId': sid})

    def handle_disconnect(self, reason=None):
        sid = _get_sid()
        request_id = new_request_id()
        try:
            self.disconnect(sid, request_id)
        except Exception as exc:
            self.services.errors.report(exc, 'disconnect', sid=sid, request=request_id)

    def handle_find_game(self, data=None):
        sid = _get_sid()
        request_id = new_request_id()
        self.log.info('socket', 'Player looking for game', sid=sid, request=request_id)
        try:
            if self.services.registry.for_connection(sid) is not None:
                raise PlayerError('You are already in a game')
            result = self.services.matchmaker.find_game(sid, request_id)
            if result.waiting:
                self._send('waitingForOpponent', {}, sid)
                return
            self._announce_game(result.session, request_id)
        except Exception as exc:
            self._report(exc, 'findGame', sid, request_id)

    def handle_make_move(self, data=None):
        sid = _get_sid()
        request_id = new_request_id()
        try:
            self.services.rate_limiter.check(sid)
            game_id, row, col, asserted_win = _parse_move(data)
            self.log.info('socket', 'Move received', sid=sid, game=game_id, row=row, col=col, request=request_id)
            self.make_move(sid, game_id, row, col, asserted_win, request_id)
        except Exception as exc:
            self._report(exc, 'makeMove', sid, request_id)

    def make_move(self, sid: str, game_id: str, row: Any, col: Any, asserted_win: bool,
                  request_id: Optional[str] = None) -> None:
        registry = self.services.registry
        session = registry.get(game_id)
        with session.lock:
            record = session.apply_move(row, col, sid)
            line = find_winning_line(session.board, record.position[0], record.position[1],
                                     record.symbol, session.win_streak, session.grid_size)
            if asserted_win != (line is not None):
                self.log.warning('socket', 'Client win assertion disagrees with server', game=game_id,
                                 sid=sid, asserted=asserted_win, actual=line is not None, request=request_id)
            if line is not None:
                session.finish(TERMINAL_WIN)
            mover_update, opponent_update = build_move_updates(session, record, line)
            opponent = session.get_opponent(sid)

        if record.expanded:
            outcome = mover_update.outcome
            self.log.info('socket', 'Board was full, grid expanded', game=game_id, size=outcome.new_grid_size,
                          streak=outcome.win_streak, request=request_id)
        if opponent is not None:
            self._send('moveMade', opponent_update.to_dict(), opponent.connection_id)
        self._send('moveMade', mover_update.to_dict(), sid)

        if line is not None:
            registry.discard(game_id)
            self.log.info('socket', 'Winning move, game ended', game=game_id, winner=record.symbol,
                          request=request_id)

    def disconnect(self, sid: str, request_id: Optional[str] = None) -> None:
        self.log.info('socket', 'Client disconnected', sid=sid, request=request_id)
        self.services.matchmaker.remove(sid)
        self.services.rate_limiter.forget(sid)

        session = self.services.registry.for_connection(sid)
        if session is None:
            return
        with session.lock:
            if session.is_terminal:
                return
            session.finish(TERMINAL_DISCONNECT)
            opponent = session.get_opponent(sid)
        self.services.registry.discard(session.game_id)
        if opponent is not None:
            self.log.info('socket', 'Notifying opponent of disconnection', game=session.game_id,
                          disconnected=sid, opponent=opponent.connection_id, request=request_id)
            self._send('opponentDisconnected', {'gameId': session.game_id}, opponent.connection_id)

    def _announce_game(self, session, request_id: str) -> None:
        first, second = session.seats
        for seat, other in ((first, second), (second, first)):
            self._send('gameFound', {
                'gameId': session.game_id,
                'opponentId': other.connection_id,
                'isFirstPlayer': seat is first,
                'startingPlayer': session.starting_symbol,
                'assignedSymbol': seat.symbol,
                'gridSize': session.grid_size,
                'winStreak': session.win_streak,
            }, seat.connection_id)
        self.log.info('socket', 'Game found notifications sent', game=session.game_id, request=request_id)

    def _report(self, exc: BaseException, context: str, sid: str, request_id: str) -> None:
        payload = self.services.errors.report(exc, context, sid=sid, request=request_id)
        self._send('error', payload, sid)

    def _send(self, event: str, payload: Dict[str, Any], sid: str) -> None:
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)


def register_socketio_handlers(socketio, services: GameServices, namespace: str = '/ws') -> SessionTransport:
    """Register Socket.IO event handlers on `namespace` and return the transport."""
    transport = SessionTransport(socketio, services, namespace)
    socketio.on_event('connect', transport.handle_connect, namespace=namespace)
    socketio.on_event('disconnect', transport.handle_disconnect, namespace=namespace)
    socketio.on_event('findGame', transport.handle_find_game, namespace=namespace)
    socketio.on_event('makeMove', transport.handle_make_move, namespace=namespace)
    return transport
