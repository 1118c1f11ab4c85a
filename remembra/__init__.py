"""Remembra: spaced-repetition scheduling for a personal learning tracker."""
