"""
Goal service keeping the user's goals in sync with the API and an offline cache.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from clients.fitness_api_client import FitnessAPIClient
from models.goal import Goal, GoalInput, InvalidGoalInputError

logger = logging.getLogger(__name__)


class GoalService:
    """
    Manages goals through the fitness API, caching them in a key-value store.

    The store is any object with ``get(key, default)`` and ``set(key, value)``.
    """

    STORAGE_KEY = 'fitness_tracker_goals'

    def __init__(self, api_client: FitnessAPIClient, store):
        """
        Initialize the service and load cached goals.

        Args:
            api_client: Fitness API client
            store: Key-value store used for offline access
        """
        self.api_client = api_client
        self.store = store
        self.goals: List[Goal] = []
        self.load_goals_from_storage()

    async def fetch_goals(self) -> List[Goal]:
        """
        Refresh goals from the API and update the cache.

        On failure the cached goals are left untouched and the error propagates.
        """
        goals = await self.api_client.fetch_goals()
        self.goals = goals
        self._save_goals_to_storage()
        return self.goals

    async def create_goal(self, goal_input: GoalInput) -> Goal:
        goal = await self.api_client.create_goal(goal_input)
        self.goals.append(goal)
        self._save_goals_to_storage()
        return goal

    async def update_goal(self, goal: Goal, goal_input: GoalInput) -> Goal:
        """Replace an existing goal's inputs through the API."""
        updated = await self.api_client.update_goal(goal.id, goal_input)
        self.replace_goal(updated)
        return updated

    def get_goal_for_year(self, year: int) -> Optional[Goal]:
        """First goal for the given calendar year, or None."""
        for goal in self.goals:
            if goal.year == year:
                return goal
        return None

    def get_current_goal(self, now: Optional[datetime] = None) -> Optional[Goal]:
        now = now or datetime.now(timezone.utc)
        return self.get_goal_for_year(now.year)

    def replace_goal(self, goal: Goal) -> None:
        """
        Replace the cached goal with the same ID, appending it if absent.

        Args:
            goal: The complete replacement goal
        """
        for index, existing in enumerate(self.goals):
            if existing.id == goal.id:
                self.goals[index] = goal
                break
        else:
            self.goals.append(goal)
        self._save_goals_to_storage()

    def load_goals_from_storage(self) -> None:
        """Load cached goals; unreadable entries leave the list empty."""
        cached = self.store.get(self.STORAGE_KEY)
        if cached is None:
            return

        try:
            self.goals = [Goal.from_api_data(item) for item in cached]
            logger.info(f"Loaded {len(self.goals)} cached goals")
        except (InvalidGoalInputError, TypeError) as e:
            logger.warning(f"Failed to load goals from storage: {e}")
            self.goals = []

    def _save_goals_to_storage(self) -> None:
        self.store.set(self.STORAGE_KEY, [goal.to_api_dict() for goal in self.goals])
        logger.debug(f"Saved {len(self.goals)} goals to storage")
