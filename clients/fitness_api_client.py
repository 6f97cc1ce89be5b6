"""
Fitness tracker web API client for goal and workout persistence.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional
import requests

from models.goal import Goal, GoalInput, InvalidGoalInputError
from models.workout import MalformedRecordError, WorkoutRecord

logger = logging.getLogger(__name__)

class FitnessAPIError(Exception):
    """Raised when the fitness API request fails or returns an error response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_client_error(self) -> bool:
        """True for 4xx responses that retrying will not fix."""
        return self.status_code is not None and 400 <= self.status_code < 500 and self.status_code != 429

class FitnessAPIClient:
    """Client for the fitness tracker web API's goals and workouts endpoints."""

    GOALS_PATH = '/api/goals'
    WORKOUTS_PATH = '/api/workouts'

    def __init__(self, base_url: str, api_timeout: int = 30,
                 max_retries: int = 3, base_retry_delay: float = 1.0):
        """
        Initialize the API client.

        Args:
            base_url: Root URL of the web app (without the /api suffix)
            api_timeout: Request timeout in seconds
            max_retries: Retries for timeouts, connection errors, 429 and 5xx responses
            base_retry_delay: Base delay for exponential backoff in seconds
        """
        if not base_url:
            raise ValueError("Fitness API base URL must be provided")

        self.base_url = base_url.rstrip('/')
        self.api_timeout = api_timeout
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay

        self.session = requests.Session()
        self._setup_session()

    def _setup_session(self) -> None:
        """Setup HTTP session with required headers."""
        self.session.headers.update({
            'User-Agent': 'Fitness-Sync/1.0',
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        })

    async def fetch_goals(self) -> List[Goal]:
        """
        Retrieve all goals.

        Returns:
            List of Goal objects

        Raises:
            FitnessAPIError: If the request fails or a goal cannot be decoded
        """
        response = await self._make_request('GET', self.GOALS_PATH)
        if response.status_code != 200:
            self._raise_for_response(response, "Failed to fetch goals")

        data = self._decode_json(response)
        items = data.get('goals') or []
        if not isinstance(items, list):
            raise FitnessAPIError("Invalid response from server: 'goals' must be a list", response.status_code)

        try:
            goals = [Goal.from_api_data(item) for item in items]
        except InvalidGoalInputError as e:
            raise FitnessAPIError(f"Invalid goal in API response: {e}") from e

        logger.info(f"Retrieved {len(goals)} goals from fitness API")
        return goals

    async def create_goal(self, goal_input: GoalInput) -> Goal:
        """
        Create a goal from user inputs; the server assigns the ID and derived targets.

        Raises:
            FitnessAPIError: If the request fails or the response is invalid
        """
        response = await self._make_request('POST', self.GOALS_PATH, json=goal_input.to_payload())
        if response.status_code not in (200, 201):
            self._raise_for_response(response, "Failed to create goal")

        goal = self._decode_goal(response)
        logger.info(f"Created goal '{goal.name}' for {goal.year}")
        return goal

    async def update_goal(self, goal_id: str, goal_input: GoalInput) -> Goal:
        """
        Replace an existing goal's inputs.

        Raises:
            FitnessAPIError: If the request fails or the response is invalid
        """
        response = await self._make_request(
            'PUT', self.GOALS_PATH, json=goal_input.to_update_payload(goal_id)
        )
        if response.status_code != 200:
            self._raise_for_response(response, f"Failed to update goal {goal_id}")

        goal = self._decode_goal(response)
        logger.info(f"Updated goal '{goal.name}' for {goal.year}")
        return goal

    async def sync_workout(self, workout: WorkoutRecord) -> bool:
        """
        Upload one workout.

        Returns:
            True if the workout was created, False if it already existed

        Raises:
            FitnessAPIError: For any other response
        """
        response = await self._make_request('POST', self.WORKOUTS_PATH, json=workout.to_api_dict())

        if response.status_code == 201:
            logger.info(f"Workout synced successfully: {workout.activity} on {workout.date}")
            return True
        if response.status_code == 409:
            logger.info(f"Workout already exists: {workout.activity} on {workout.date}")
            return False

        self._raise_for_response(response, f"Failed to sync workout {workout.id}")

    async def fetch_workouts(self) -> List[WorkoutRecord]:
        """
        Retrieve all workouts stored by the API.

        Malformed entries are logged and skipped.
        """
        response = await self._make_request('GET', self.WORKOUTS_PATH)
        if response.status_code != 200:
            self._raise_for_response(response, "Failed to fetch workouts")

        workouts = []
        for item in self._decode_json(response).get('workouts', []):
            try:
                workouts.append(WorkoutRecord.from_api_data(item))
            except MalformedRecordError as e:
                logger.warning(f"Skipping malformed workout from API: {e}")
                continue

        logger.info(f"Retrieved {len(workouts)} workouts from fitness API")
        return workouts

    def _decode_json(self, response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise FitnessAPIError(f"Invalid JSON response: {e}", response.status_code) from e
        if not isinstance(data, dict):
            raise FitnessAPIError("Invalid response from server", response.status_code)
        return data

    def _decode_goal(self, response: requests.Response) -> Goal:
        data = self._decode_json(response)
        try:
            return Goal.from_api_data(data['goal'])
        except KeyError:
            raise FitnessAPIError("Invalid response from server: missing 'goal'", response.status_code)
        except InvalidGoalInputError as e:
            raise FitnessAPIError(f"Invalid goal in API response: {e}", response.status_code) from e

    def _raise_for_response(self, response: requests.Response, context: str) -> None:
        """
        Raise a FitnessAPIError describing a non-success response.

        Uses the API's {"error": ...} message when present.
        """
        message = None
        try:
            body = response.json()
            if isinstance(body, dict):
                message = body.get('error')
        except ValueError:
            pass

        if message:
            error_msg = f"{context}: API Error: {message}"
        else:
            error_msg = f"{context}: HTTP Error: {response.status_code}"

        logger.error(error_msg)
        raise FitnessAPIError(error_msg, response.status_code)

    async def _make_request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Make HTTP request with retry logic.

        Timeouts, connection errors, 429 and 5xx responses are retried with
        exponential backoff; the final response is returned as-is.

        Raises:
            FitnessAPIError: If the request cannot be completed
        """
        url = f"{self.base_url}{path}"
        kwargs.setdefault('timeout', self.api_timeout)
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            try:
                # Off the event loop so a caller's wait_for can give up on it
                response = await asyncio.to_thread(self.session.request, method, url, **kwargs)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                if attempt < attempts - 1:
                    logger.warning(f"Request to {url} failed: {e} (attempt {attempt + 1}/{attempts})")
                    await self._exponential_backoff(attempt)
                    continue
                logger.error(f"Request to {url} failed after {attempts} attempts: {e}")
                raise FitnessAPIError(f"Network error: {e}") from e
            except requests.exceptions.RequestException as e:
                logger.error(f"Request to {url} failed: {e}")
                raise FitnessAPIError(f"Network error: {e}") from e

            if response.status_code == 429 or response.status_code >= 500:
                if attempt < attempts - 1:
                    logger.warning(f"Server returned {response.status_code} for {url} "
                                   f"(attempt {attempt + 1}/{attempts})")
                    await self._exponential_backoff(attempt)
                    continue

            return response

        raise FitnessAPIError(f"Request to {url} was not attempted")

    async def _exponential_backoff(self, attempt: int) -> None:
        """Sleep with exponential backoff and up to 0.5 seconds of jitter."""
        if self.base_retry_delay <= 0:
            return
        delay = self.base_retry_delay * (2 ** attempt)
        jitter = (time.time() % 1) * 0.5
        total_delay = delay + jitter

        logger.debug(f"Waiting {total_delay:.2f} seconds before retry")
        await asyncio.sleep(total_delay)
