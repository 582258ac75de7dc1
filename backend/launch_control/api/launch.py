from flask import Blueprint, jsonify, request, current_app
from launch_control.services.games.controller import (
    LIGHT_SEQUENCE,
    MAX_TRIES,
    PRE_DELAY_MAX_MS,
    PRE_DELAY_MIN_MS,
)
from launch_control.services.games.records import (
    BEST_AVERAGE_KEY,
    BEST_SINGLE_KEY,
    SqlRecordStore,
)
from launch_control.services.games.scoring import verdict_for, verdict_table


launch = Blueprint('launch', __name__)


@launch.route('/records', methods=['GET'])
def get_records():
    store = SqlRecordStore()
    return jsonify({
        'best_single_ms': store.read(BEST_SINGLE_KEY),
        'best_average_ms': store.read(BEST_AVERAGE_KEY),
    })


@launch.route('/config', methods=['GET'])
def get_config():
    # Phase delays so clients can animate locally; the ready delay is random
    phases = [{'name': p.name, 'delay_ms': p.delay_ms} for p in LIGHT_SEQUENCE]
    return jsonify({
        'max_tries': MAX_TRIES,
        'pre_delay_ms': [PRE_DELAY_MIN_MS, PRE_DELAY_MAX_MS],
        'phases': phases,
        'verdicts': verdict_table(),
    })


@launch.route('/verdict', methods=['GET'])
def get_verdict():
    raw = request.args.get('average_ms')
    try:
        avg_ms = int(raw)
    except (TypeError, ValueError):
        return jsonify({'error': 'average_ms must be an integer'}), 400
    if avg_ms < 0:
        return jsonify({'error': 'average_ms must not be negative'}), 400
    verdict = verdict_for(avg_ms)
    current_app.logger.debug(f"[lc-verdict] average={avg_ms}ms rank={verdict.rank}")
    return jsonify(verdict._asdict())
