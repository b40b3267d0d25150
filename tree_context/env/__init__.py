from .env import Env as Env
from .env import PrimaryType as PrimaryType
from .load_env import load_env as load_env
