import enum
from typing import Optional

from stackwrapper import config
from stackwrapper.cloudformation.exceptions import ConfigurationError


class Region(enum.Enum):
    """AWS regions stacks can be created in, with their CloudFormation endpoint."""

    us_east_1 = ("us-east-1", "US East (Northern Virginia) Region")
    us_east_2 = ("us-east-2", "US East (Ohio) Region")
    us_west_1 = ("us-west-1", "US West (Northern California) Region")
    us_west_2 = ("us-west-2", "US West (Oregon) Region")
    ca_central_1 = ("ca-central-1", "Canada (Central) Region")
    eu_west_1 = ("eu-west-1", "EU (Ireland) Region")
    eu_west_2 = ("eu-west-2", "EU (London) Region")
    eu_central_1 = ("eu-central-1", "EU (Frankfurt) Region")
    eu_north_1 = ("eu-north-1", "EU (Stockholm) Region")
    ap_southeast_1 = ("ap-southeast-1", "Asia Pacific (Singapore) Region")
    ap_southeast_2 = ("ap-southeast-2", "Asia Pacific (Sydney) Region")
    ap_northeast_1 = ("ap-northeast-1", "Asia Pacific (Tokyo) Region")
    ap_south_1 = ("ap-south-1", "Asia Pacific (Mumbai) Region")
    sa_east_1 = ("sa-east-1", "South America (Sao Paulo) Region")

    def __init__(self, short_name: str, readable_name: str):
        self.short_name = short_name
        self.readable_name = readable_name

    @property
    def endpoint(self) -> str:
        return f"cloudformation.{self.short_name}.amazonaws.com"

    @property
    def endpoint_url(self) -> str:
        return f"https://{self.endpoint}"

    @staticmethod
    def default() -> "Region":
        return Region.from_short_name(config.DEFAULT_REGION)

    @staticmethod
    def from_short_name(short_name: Optional[str]) -> "Region":
        """
        Looks up a region by its short name, accepting both ``eu-west-1`` and ``eu_west_1``.

        :param short_name: the region name, empty values resolve to the default region
        :raises ConfigurationError: if the name does not denote a known region
        """
        if not short_name or not short_name.strip():
            return Region.default()
        key = short_name.strip().lower().replace("-", "_")
        try:
            return Region[key]
        except KeyError:
            raise ConfigurationError(f"Unknown AWS region: {short_name}") from None
