import stackwrapper

# stackwrapper version
VERSION = stackwrapper.__version__

# strings to indicate truthy/falsy values
TRUE_STRINGS = ("1", "true", "True")
FALSE_STRINGS = ("0", "false", "False")
# strings with valid log levels for SW_LOG
LOG_LEVELS = ("trace", "debug", "info", "warn", "error", "warning")
SW_LOG_TRACE = "trace"
TRACE_LOG_LEVELS = [SW_LOG_TRACE]

# region used when a stack definition does not name one
AWS_REGION_US_EAST_1 = "us-east-1"

# minimum time (in seconds) to wait for a stack creation before considering it a failure
MIN_STACK_TIMEOUT = 300

# timeout value used by automated tests: disables the timeout bound and the wait between polls
TEST_STACK_TIMEOUT = -12345

# default number of seconds between two stack status checks
DEFAULT_POLL_INTERVAL = 10

# capabilities passed on every stack creation (allows templates to create IAM resources)
STACK_CAPABILITIES = ["CAPABILITY_IAM"]

# stack states considered "running" when selecting the oldest stack by name prefix
RUNNING_STACK_STATUSES = ["UPDATE_COMPLETE", "CREATE_COMPLETE", "ROLLBACK_COMPLETE"]

# name of the synthetic output entry holding the provider's stack id
STACK_ID_OUTPUT_KEY = "stack_id"

# default name of the properties file the merged stack outputs are written to
DEFAULT_OUTPUT_FILE = "aws_stack_output.properties"

# header comment of the outputs properties file
OUTPUT_FILE_COMMENT = "AWS properties"

# maximum number of connections kept in a boto client pool
MAX_POOL_CONNECTIONS = 10
