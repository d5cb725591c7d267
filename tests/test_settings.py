import unittest

from game import EngineSettings, env_int


class TestEnvInt(unittest.TestCase):
    def test_given_unset_or_blank_when_reading_then_default(self):
        self.assertEqual(env_int("X", 7, {}), 7)
        self.assertEqual(env_int("X", 7, {"X": "  "}), 7)

    def test_given_positive_integer_when_reading_then_parsed(self):
        self.assertEqual(env_int("X", 7, {"X": "250"}), 250)

    def test_given_garbage_or_non_positive_when_reading_then_default_and_warning(self):
        for raw in ("abc", "1.5", "0", "-3"):
            with self.assertLogs("memory_core.settings", level="WARNING") as cm:
                self.assertEqual(env_int("X", 7, {"X": raw}), 7)
            self.assertIn("[config]", cm.output[0])


class TestEngineSettings(unittest.TestCase):
    def test_given_defaults_when_constructed_then_browser_timings(self):
        s = EngineSettings()
        self.assertEqual((s.cooldown_seconds, s.win_delay_seconds, s.tick_seconds), (0.9, 0.4, 1.0))

    def test_given_environment_when_from_env_then_milliseconds_converted(self):
        s = EngineSettings.from_env({"MEMORY_COOLDOWN_MS": "500", "MEMORY_TICK_MS": "250"})
        self.assertAlmostEqual(s.cooldown_seconds, 0.5)
        self.assertAlmostEqual(s.win_delay_seconds, 0.4)
        self.assertAlmostEqual(s.tick_seconds, 0.25)

    def test_given_non_positive_timing_when_constructed_then_value_error(self):
        with self.assertRaises(ValueError):
            EngineSettings(cooldown_seconds=0)
        with self.assertRaises(ValueError):
            EngineSettings(tick_seconds=-1)


if __name__ == '__main__':
    unittest.main(verbosity=2)
