"""Harvest Field - collect items against the clock across a run of levels"""

from .config import Difficulty, LevelConfig, load_difficulty
from .session import SessionController, State
from .harvest_env import HarvestEnv

__all__ = ['Difficulty', 'LevelConfig', 'load_difficulty', 'SessionController', 'State', 'HarvestEnv']
