"""
Trivia Quiz Bot - multiple-choice trivia quizzes for Discord.
"""
