"""
Trivia quiz game: engine, screen navigation and Discord presentation.
"""
