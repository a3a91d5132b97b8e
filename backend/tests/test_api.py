def test_register_and_login(client):
    res = client.post('/api/sudoku/register', json={'username': 'alice', 'email': 'Alice@Example.com', 'password': 'pw'})
    assert res.status_code == 201
    user = res.get_json()['user']
    assert user['email'] == 'alice@example.com'
    assert 'password_hash' not in user

    dup = client.post('/api/sudoku/register', json={'username': 'alice2', 'email': 'alice@example.com', 'password': 'pw'})
    assert dup.status_code == 409
    missing = client.post('/api/sudoku/register', json={'username': 'bob'})
    assert missing.status_code == 400

    bad = client.post('/api/sudoku/login', json={'email': 'alice@example.com', 'password': 'nope'})
    assert bad.status_code == 401
    assert 'error' in bad.get_json()

    ok = client.post('/api/sudoku/login', json={'email': 'alice@example.com', 'password': 'pw'})
    assert ok.status_code == 200
    assert client.get('/api/sudoku/check_login').get_json()['user']['username'] == 'alice'


def test_protected_routes_require_login(client):
    res = client.post('/api/sudoku/submit-game', json={'timeSeconds': 100, 'difficulty': 'easy', 'numberOfMistakes': 0})
    assert res.status_code == 401
    assert res.get_json() == {'error': 'Authentication required'}


def test_profile_and_password(login_client):
    alice_client, _ = login_client('alice')
    login_client('bob')
    assert alice_client.put('/api/sudoku/profile', json={'username': 'bob'}).status_code == 409
    res = alice_client.put('/api/sudoku/profile', json={'username': 'alicia'})
    assert res.get_json()['user']['username'] == 'alicia'

    assert alice_client.put('/api/sudoku/password', json={}).status_code == 400
    assert alice_client.put('/api/sudoku/password', json={'newPassword': 'fresh'}).status_code == 200
    alice_client.post('/api/sudoku/logout')
    res = alice_client.post('/api/sudoku/login', json={'email': 'alice@example.com', 'password': 'fresh'})
    assert res.status_code == 200


def test_submit_game_and_stats(login_client):
    alice_client, _ = login_client('alice')
    res = alice_client.post('/api/sudoku/submit-game', json={'timeSeconds': 500, 'difficulty': 'easy', 'numberOfMistakes': 0})
    assert res.status_code == 200
    assert res.get_json() == {'message': 'Game submitted successfully', 'score': 396}

    stats = alice_client.get('/api/sudoku/stats').get_json()['stats']
    assert stats['today_score'] == 396
    assert stats['difficulties']['easy']['best_time'] == 500


def test_submit_game_validation(login_client):
    alice_client, _ = login_client('alice')
    post = lambda body: alice_client.post('/api/sudoku/submit-game', json=body)
    assert post({'difficulty': 'easy', 'numberOfMistakes': 0}).status_code == 400
    assert post({'timeSeconds': 100, 'difficulty': 'expert', 'numberOfMistakes': 0}).status_code == 400
    assert post({'timeSeconds': 100, 'difficulty': 'easy'}).status_code == 400
    assert post({'timeSeconds': -5, 'difficulty': 'easy', 'numberOfMistakes': 0}).status_code == 400
    assert post({'timeSeconds': 'fast', 'difficulty': 'easy', 'numberOfMistakes': 0}).status_code == 400
    assert post({'timeSeconds': 500.9, 'difficulty': 'easy', 'numberOfMistakes': 0}).status_code == 400
    assert post({'timeSeconds': 500, 'difficulty': 'easy', 'numberOfMistakes': 0.7}).status_code == 400
    assert post({'timeSeconds': '5e2', 'difficulty': 'easy', 'numberOfMistakes': 0}).status_code == 400
    assert post({'timeSeconds': True, 'difficulty': 'easy', 'numberOfMistakes': 0}).status_code == 400
    assert alice_client.get('/api/sudoku/stats').get_json()['stats']['total_games'] == 0

    # whole-number floats and digit strings are still integers
    assert post({'timeSeconds': 500.0, 'difficulty': 'easy', 'numberOfMistakes': '0'}).status_code == 200
    easy = alice_client.get('/api/sudoku/stats').get_json()['stats']['difficulties']['easy']
    assert easy['best_time_no_mistakes'] == 500


def test_global_leaderboards(login_client, client):
    alice_client, _ = login_client('alice')
    bob_client, _ = login_client('bob')
    alice_client.post('/api/sudoku/submit-game', json={'timeSeconds': 500, 'difficulty': 'easy', 'numberOfMistakes': 0})
    bob_client.post('/api/sudoku/submit-game', json={'timeSeconds': 900, 'difficulty': 'hard', 'numberOfMistakes': 1})

    body = client.get('/api/sudoku/leaderboard/global').get_json()
    assert body['periodType'] == 'all'
    assert body['limit'] == 10
    assert [e['username'] for e in body['leaderboard']] == ['bob', 'alice']

    body = client.get('/api/sudoku/leaderboard/global?periodType=day&limit=1').get_json()
    assert len(body['leaderboard']) == 1

    body = client.get('/api/sudoku/leaderboard/global/top100/week').get_json()
    assert body['limit'] == 100
    assert body['periodType'] == 'week'

    assert client.get('/api/sudoku/leaderboard/global?periodType=decade').status_code == 400
    assert client.get('/api/sudoku/leaderboard/global/top100/decade').status_code == 400
    assert client.get('/api/sudoku/leaderboard/global?limit=abc').status_code == 400


def test_medals(login_client):
    alice_client, alice = login_client('alice')
    url = f'/api/sudoku/players/{alice}/medals'
    assert alice_client.post(url, json={'medalType': 'gold'}).status_code == 400
    alice_client.post(url, json={'medalType': 'gold', 'description': 'Daily winner'})
    res = alice_client.post(url, json={'medalType': 'gold', 'description': 'Daily winner', 'numberOfMedals': 2})
    assert res.get_json()['medal']['number_of_medals'] == 3

    medals = alice_client.get('/api/sudoku/medals').get_json()['medals']
    assert medals == [{'medal_type': 'gold', 'description': 'Daily winner', 'number_of_medals': 3}]
    assert alice_client.post('/api/sudoku/players/999/medals', json={'medalType': 'gold', 'description': 'x'}).status_code == 404


def test_health(client):
    assert client.get('/api/sudoku/health').get_json()['status'] == 'healthy'
