from statecraft.models.agent import Agent  # noqa: F401
from statecraft.models.base import Base  # noqa: F401
from statecraft.models.country import Country  # noqa: F401
from statecraft.models.game import Game, GamePhase, GameStatus  # noqa: F401
from statecraft.models.game_event import GameEvent  # noqa: F401
from statecraft.models.pact import Pact, PactKind  # noqa: F401
from statecraft.models.province import Province  # noqa: F401
from statecraft.models.submission import Submission  # noqa: F401
from statecraft.models.ultimatum import Ultimatum, UltimatumStatus  # noqa: F401
from statecraft.models.war import War  # noqa: F401
