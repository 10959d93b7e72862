"""
Memory Palace backend: turns extracted study text into summaries, quizzes and formula-grouped numerical sets.
"""
__version__ = "0.1.0"
