"""Persisted "last searched city" preference.

The presentation layer restores the last manually searched city at startup and
the orchestrator records it after every successful city search. The value is a
single string per user, stored in a DynamoDB table with 'user_id' as the
Partition Key.

Failures talking to DynamoDB are logged and reported through the return value;
a missing preference must never break a weather lookup.
"""

import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from config import WeatherSettings

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "default"
LAST_CITY_ATTRIBUTE = "LastSearchedCity"


class LastSearchedCityStore:
    """Reads and writes the last searched city for one user.

        Attributes:
            user_id: Partition key of the item holding the preference.
    """
    def __init__(self, table=None, user_id: str = DEFAULT_USER_ID, settings: Optional[WeatherSettings] = None):
        if table is None:
            settings = settings or WeatherSettings.from_env()
            table = boto3.resource("dynamodb").Table(settings.last_city_table)
        self.table = table
        self.user_id = user_id

    def load(self) -> Optional[str]:
        """Returns the stored city, or None if nothing was stored or the read failed."""
        try:
            # Only retrieve the city attribute
            response = self.table.get_item(Key={"user_id": self.user_id},
                                           ProjectionExpression=LAST_CITY_ATTRIBUTE)
        except ClientError as e:
            logger.warning("Error retrieving %s: %s", LAST_CITY_ATTRIBUTE, e)
            return None
        return response.get("Item", {}).get(LAST_CITY_ATTRIBUTE)

    def save(self, city: str) -> bool:
        """Stores city as the last searched city.

            Returns:
                True if the update succeeded, False otherwise.
        """
        try:
            self.table.update_item(
                Key={"user_id": self.user_id},
                UpdateExpression="SET LastSearchedCity = :c",
                ExpressionAttributeValues={":c": city},
            )
        except ClientError as e:
            logger.warning("%s update failed: %s", LAST_CITY_ATTRIBUTE, e)
            return False
        return True
