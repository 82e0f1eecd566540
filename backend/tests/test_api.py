from conftest import NAMESPACE


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_health(client, connect):
    assert client.get('/api/health').get_json() == {'status': 'ok', 'rooms': 0}
    connect('abc', is_host=True)
    assert client.get('/api/health').get_json() == {'status': 'ok', 'rooms': 1}


def test_unknown_room_reads_as_empty(client, flask_app):
    res = client.get('/api/room/nowhere/players')
    assert res.status_code == 200
    assert res.get_json() == {
        'data': [],
        'waitingForPlayers': True,
        'gameStarted': False,
        'gameEnded': False,
    }
    # the query never creates rooms
    assert 'nowhere' not in flask_app.extensions['partyroom'].store


def test_player_list_mirrors_room(client, connect):
    host = connect('123456', is_host=True)
    connect('123456', nickname='Alice')
    connect('123456', nickname='Bob')

    state = client.get('/api/room/123456/players').get_json()
    assert [p['nickname'] for p in state['data']] == ['Alice', 'Bob']
    assert all(p['isHost'] is False and p['score'] == 0 for p in state['data'])
    assert state['waitingForPlayers'] is True

    host.emit('message', {'type': 'hostStartGame', 'numPairs': 3, 'gameTime': 30}, namespace=NAMESPACE)
    state = client.get('/api/room/123456/players').get_json()
    assert state['gameStarted'] is True
    assert state['waitingForPlayers'] is False

    host.emit('message', {'type': 'hostCloseGame'}, namespace=NAMESPACE)
    state = client.get('/api/room/123456/players').get_json()
    assert state['data'] == []
    assert state['gameStarted'] is False
