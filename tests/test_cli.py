import io
import random
import unittest
from contextlib import redirect_stdout
from unittest import mock

from game import ManualScheduler, MatchEngine, Phase
from memory_core.cli import ConsoleReporter, main, play


class IdentityRng(random.Random):
    def randint(self, a, b):
        return b


class Console:
    """Scripted terminal: canned answers in, printed lines out, and a fake clock.

    An answer given as (seconds, text) makes the player think that long before typing it.
    """

    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []
        self.lines = []
        self.now = 0.0

    def read(self, prompt):
        self.prompts.append(prompt)
        answer = self.answers.pop(0)
        if isinstance(answer, tuple):
            think, answer = answer
            self.now += think
        return answer

    def out(self, text):
        self.lines.append(text)

    def sleep(self, seconds):
        self.now += seconds + 0.001

    def clock(self):
        return self.now


def run(answers, alphabet=("A", "B")):
    console = Console(answers)
    scheduler = ManualScheduler()
    engine = MatchEngine(
        alphabet=alphabet,
        scheduler=scheduler,
        rng=IdentityRng(),
        listeners=[ConsoleReporter(out=console.out)],
    )
    play(engine, scheduler, read=console.read, out=console.out, sleep=console.sleep, clock=console.clock)
    return engine, console


class TestPlay(unittest.TestCase):
    def test_given_scripted_perfect_game_when_playing_then_win_announced_and_bad_input_tolerated(self):
        engine, console = run(["0", "2", "x", "1", "99", "3", "n"])
        self.assertIs(engine.state.phase, Phase.WON)
        self.assertEqual(engine.state.moves, 2)
        self.assertIn("Match! A", console.lines)
        self.assertIn("Match! B", console.lines)
        self.assertIn("Could not parse. Try again.", console.lines)
        self.assertIn("No such tile. Try again.", console.lines)
        self.assertIn("You won in 2 moves and 0s!", console.lines)
        self.assertEqual(console.prompts[-1], "Play again? [y/N] ")
        self.assertEqual(console.answers, [])

    def test_given_mismatch_when_playing_then_cooldown_waited_and_tiles_hidden(self):
        engine, console = run(["0", "1", "0", "0", "q"])
        self.assertIn("No match: A / B", console.lines)
        self.assertIn("That tile is already face up.", console.lines)
        self.assertEqual(engine.state.moves, 1)
        self.assertEqual(engine.state.picks, (0,))
        self.assertGreaterEqual(console.now, 0.9)

    def test_given_thinking_time_before_first_and_last_pick_when_winning_then_only_time_after_first_reveal_counts(self):
        engine, console = run([(10.0, "0"), (3.0, "1"), "n"], alphabet=["A"])
        self.assertIs(engine.state.phase, Phase.WON)
        self.assertEqual(engine.state.elapsed_seconds, 3)
        self.assertIn("You won in 1 moves and 3s!", console.lines)

    def test_given_thinking_time_between_picks_when_playing_then_prompt_shows_elapsed_seconds(self):
        engine, console = run([(5.0, "0"), (2.0, "x"), "q"])
        self.assertEqual(engine.state.elapsed_seconds, 2)
        self.assertTrue(console.prompts[-1].startswith("[moves 0 | 2s]"))

    def test_given_reset_and_play_again_when_playing_then_fresh_boards(self):
        engine, console = run(["0", "r", "0", "2", "1", "3", "y", "q"])
        self.assertIs(engine.state.phase, Phase.IDLE)
        self.assertEqual(engine.state.moves, 0)
        self.assertEqual(sum(1 for line in console.lines if line.startswith("You won")), 1)


class TestMain(unittest.TestCase):
    def test_given_closed_stdin_when_running_main_then_exits_cleanly(self):
        buf = io.StringIO()
        with mock.patch("builtins.input", side_effect=EOFError), redirect_stdout(buf):
            main(["--seed", "1"])
        self.assertIn("0:", buf.getvalue())

    def test_given_quit_when_running_main_then_returns(self):
        buf = io.StringIO()
        with mock.patch("builtins.input", return_value="q"), redirect_stdout(buf):
            main([])
        self.assertIn("15:", buf.getvalue())


if __name__ == "__main__":
    unittest.main(verbosity=2)
