import json
import unittest
from collections import defaultdict

import app as app_mod
from app import app as flask_app
from game import ManualScheduler, SessionManager


def _post(client, path, payload):
    return client.post(path, data=json.dumps(payload), content_type="application/json")


def _pairs(game_id):
    # Peek at the server-side deal; the API never discloses hidden symbols
    positions = defaultdict(list)
    for i, sym in enumerate(app_mod.sessions.get(game_id).engine.state.board.symbols()):
        positions[sym].append(i)
    return list(positions.values())


class TestFlaskAPI(unittest.TestCase):
    def setUp(self):
        # Swap in a manually driven scheduler so timers fire only when the test says so
        self._orig_sessions = app_mod.sessions
        self.scheduler = ManualScheduler()
        app_mod.sessions = SessionManager(scheduler=self.scheduler)
        self.client = flask_app.test_client()

    def tearDown(self):
        app_mod.sessions = self._orig_sessions

    def _new(self, seed=123):
        r = _post(self.client, "/api/new", {"seed": seed})
        self.assertEqual(r.status_code, 200)
        return r.get_json()

    def test_given_index_and_static_assets_when_requested_then_html_and_correct_mime(self):
        r = self.client.get("/")
        self.assertEqual(r.status_code, 200)
        self.assertIn(b"Memory Match", r.data)

        rjs = self.client.get("/main.js")
        self.assertEqual(rjs.status_code, 200)
        self.assertIn("application/javascript", rjs.headers.get("Content-Type", ""))

        rcss = self.client.get("/styles.css")
        self.assertEqual(rcss.status_code, 200)
        self.assertIn("text/css", rcss.headers.get("Content-Type", ""))

    def test_given_new_game_when_posted_then_sixteen_hidden_tiles_without_symbols(self):
        data = self._new()
        self.assertTrue(data["ok"])
        self.assertTrue(data["gameId"])
        state = data["state"]
        self.assertEqual(state["phase"], "idle")
        self.assertEqual((state["moves"], state["elapsedSeconds"], state["locked"]), (0, 0, False))
        self.assertEqual(len(state["tiles"]), 16)
        for tile in state["tiles"]:
            self.assertEqual(tile["status"], "hidden")
            self.assertNotIn("symbol", tile)
        self.assertEqual(data["events"], [])
        self.assertEqual(data["audio"]["sfx"], [])

    def test_given_matching_pair_when_revealed_then_matched_and_move_counted(self):
        data = self._new()
        gid = data["gameId"]
        a, b = _pairs(gid)[0]

        r1 = _post(self.client, "/api/reveal", {"gameId": gid, "tile": a})
        d1 = r1.get_json()
        self.assertEqual(d1["outcome"], "first_pick")
        self.assertEqual(d1["state"]["phase"], "awaiting_second_pick")
        self.assertIn("symbol", d1["state"]["tiles"][a])
        self.assertEqual(d1["audio"]["sfx"], ["flip"])
        self.assertEqual(d1["audio"]["music"], "start")

        d2 = _post(self.client, "/api/reveal", {"gameId": gid, "tile": b}).get_json()
        self.assertEqual(d2["outcome"], "match")
        self.assertEqual(d2["state"]["moves"], 1)
        self.assertEqual(d2["state"]["tiles"][a]["status"], "matched")
        self.assertEqual(d2["state"]["tiles"][b]["status"], "matched")
        self.assertEqual(d2["audio"]["sfx"], ["flip", "match"])
        self.assertIn({"type": "moves", "moves": 1}, d2["events"])

    def test_given_mismatch_when_cooldown_elapses_then_tiles_hide_again(self):
        data = self._new()
        gid = data["gameId"]
        pairs = _pairs(gid)
        a, b = pairs[0][0], pairs[1][0]

        _post(self.client, "/api/reveal", {"gameId": gid, "tile": a})
        d = _post(self.client, "/api/reveal", {"gameId": gid, "tile": b}).get_json()
        self.assertEqual(d["outcome"], "mismatch")
        self.assertEqual(d["state"]["phase"], "evaluating")
        self.assertTrue(d["state"]["locked"])
        self.assertIn({"type": "mismatch", "tiles": [a, b]}, d["events"])

        # Board is locked during the cool-down
        other = pairs[2][0]
        locked = _post(self.client, "/api/reveal", {"gameId": gid, "tile": other}).get_json()
        self.assertEqual(locked["outcome"], "ignored")

        self.scheduler.advance(0.9)
        s = _post(self.client, "/api/state", {"gameId": gid}).get_json()
        self.assertEqual(s["state"]["phase"], "idle")
        self.assertEqual(s["state"]["tiles"][a], {"id": a, "status": "hidden"})
        self.assertEqual(s["state"]["tiles"][b], {"id": b, "status": "hidden"})
        self.assertEqual(s["state"]["moves"], 1)

    def test_given_all_pairs_found_when_win_delay_elapses_then_won_event(self):
        gid = self._new()["gameId"]
        for a, b in _pairs(gid):
            _post(self.client, "/api/reveal", {"gameId": gid, "tile": a})
            last = _post(self.client, "/api/reveal", {"gameId": gid, "tile": b}).get_json()
        self.assertEqual(last["outcome"], "won")
        self.assertEqual(last["state"]["phase"], "won")
        self.assertNotIn("won", [e["type"] for e in last["events"]])

        self.scheduler.advance(0.4)
        s = _post(self.client, "/api/state", {"gameId": gid}).get_json()
        self.assertIn({"type": "won", "moves": 8, "elapsedSeconds": 0}, s["events"])
        self.assertEqual(s["audio"]["sfx"], ["win"])
        self.assertEqual(s["audio"]["music"], "stop")

    def test_given_game_in_progress_when_reset_then_fresh_board_same_id(self):
        gid = self._new()["gameId"]
        _post(self.client, "/api/reveal", {"gameId": gid, "tile": 0})
        self.scheduler.advance(2.0)
        d = _post(self.client, "/api/reset", {"gameId": gid}).get_json()
        self.assertTrue(d["ok"])
        self.assertEqual(d["gameId"], gid)
        self.assertEqual((d["state"]["moves"], d["state"]["elapsedSeconds"]), (0, 0))
        self.assertTrue(all(t["status"] == "hidden" for t in d["state"]["tiles"]))
        types = [e["type"] for e in d["events"]]
        self.assertEqual(types[-3:], ["new_game", "moves", "time"])
        self.assertIn("restart", d["audio"]["sfx"])
        self.assertEqual(d["audio"]["music"], "stop")

    def test_given_audio_toggles_when_posted_then_flags_reported(self):
        gid = self._new()["gameId"]
        d = _post(self.client, "/api/audio/toggle", {"gameId": gid, "channel": "sfx"}).get_json()
        self.assertTrue(d["audio"]["sfxMuted"])
        d = _post(self.client, "/api/audio/toggle", {"gameId": gid, "channel": "music"}).get_json()
        self.assertTrue(d["audio"]["musicMuted"])

        d = _post(self.client, "/api/reveal", {"gameId": gid, "tile": 0}).get_json()
        self.assertEqual(d["audio"]["sfx"], [])
        self.assertIsNone(d["audio"]["music"])

    def test_given_clip_names_when_fetching_audio_then_wav_served(self):
        r = self.client.get("/audio/flip.wav")
        self.assertEqual(r.status_code, 200)
        self.assertIn("audio/wav", r.headers.get("Content-Type", ""))
        self.assertTrue(r.data.startswith(b"RIFF"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
