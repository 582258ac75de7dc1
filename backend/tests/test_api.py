from launch_control import db
from launch_control.models import RecordEntry
from launch_control.services.games.records import BEST_AVERAGE_KEY, BEST_SINGLE_KEY, SqlRecordStore


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_records_empty(client):
    res = client.get('/api/launch/records')
    assert res.status_code == 200
    assert res.get_json() == {'best_single_ms': None, 'best_average_ms': None}


def test_records_after_write(flask_app, client):
    store = SqlRecordStore(flask_app)
    store.write(BEST_SINGLE_KEY, 245)
    store.write(BEST_AVERAGE_KEY, 255)
    data = client.get('/api/launch/records').get_json()
    assert data == {'best_single_ms': 245, 'best_average_ms': 255}
    # overwrite keeps a single row per key
    store.write(BEST_SINGLE_KEY, 240)
    assert RecordEntry.query.filter_by(key=BEST_SINGLE_KEY).count() == 1
    assert store.read(BEST_SINGLE_KEY) == 240


def test_corrupt_record_reads_as_absent(client):
    db.session.add(RecordEntry(key=BEST_SINGLE_KEY, value='not-a-number'))
    db.session.commit()
    data = client.get('/api/launch/records').get_json()
    assert data['best_single_ms'] is None


def test_config(client):
    data = client.get('/api/launch/config').get_json()
    assert data['max_tries'] == 5
    assert data['pre_delay_ms'] == [400, 900]
    assert [p['name'] for p in data['phases']] == ['ready', 'set', 'hold', 'go']
    assert [p['delay_ms'] for p in data['phases']] == [None, 500, 400, 400]
    assert [v['max_average_ms'] for v in data['verdicts']] == [260, 320, 380, None]


def test_verdict_endpoint(client):
    res = client.get('/api/launch/verdict?average_ms=300')
    assert res.status_code == 200
    assert res.get_json()['label'] == 'Très solide'
    res = client.get('/api/launch/verdict?average_ms=fast')
    assert res.status_code == 400
    assert 'error' in res.get_json()


def test_reset_records_command(flask_app):
    SqlRecordStore(flask_app).write(BEST_SINGLE_KEY, 245)
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['reset-records'])
    assert 'Removed 1 record(s).' in result.output
    assert SqlRecordStore(flask_app).read(BEST_SINGLE_KEY) is None
