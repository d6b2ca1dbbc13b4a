"""Songtab: songs, chord tabs and video links behind Google sign-in."""
