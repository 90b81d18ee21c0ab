from aws_cdk import aws_lambda as _lambda

# Naming convention components
APP_NAME = "sloth-util"  # The application name, prefix of every physical name

DEFAULT_STAGE = "dev"
DEFAULT_REGION = "us-east-1"
PRODUCTION_STAGE = "production"
DEVELOPMENT_STAGES = frozenset({"development", "dev"})
# Stages end up in bucket names: lowercase letters, digits and hyphens, at most 35 chars
STAGE_PATTERN = r"[a-z0-9][a-z0-9-]{0,34}"

# Architecture selection
ARCHITECTURE_ENV_VAR = "ARCHITECTURE_TYPE"
AWS_NATIVE = "aws-native"
CLOUD_AGNOSTIC = "cloud-agnostic"

# Lambda settings shared by every service
JAVA_RUNTIME = _lambda.Runtime.JAVA_17
DEFAULT_ARCHITECTURE = _lambda.Architecture.X86_64
FUNCTION_TIMEOUT_SECONDS = 30
FUNCTION_MEMORY_MB = 1024
FUNCTIONS_ASSET_DIR = "packages/functions/dist"

# Services (used in naming)
QUOTE_SERVICE = "quote-generator"
AUTH_SERVICE = "auth-service"
JWKS_SERVICE = "jwks-service"

QUOTE_HANDLER = "com.slothutil.quotes.QuoteHandler::handleRequest"
AUTH_HANDLER = "com.slothutil.auth.AuthHandler::handleRequest"
JWKS_HANDLER = "com.slothutil.auth.JWKSHandler::handleRequest"

# Configuration defaults
DEFAULT_MODEL_ID = "anthropic.claude-instant-v1"
DEFAULT_DATABASE_URL = "postgresql://localhost:5432/slothutil"
DEFAULT_REDIS_URL = "redis://localhost:6379"
# Never deploy with this outside local development, set JWT_SECRET instead.
INSECURE_SIGNING_SECRET = "insecure-placeholder-set-JWT_SECRET"
DEFAULT_TOKEN_EXPIRY_SECONDS = 3600
BUCKET_SUFFIX_LENGTH = 9

# Storage layout
TABLE_KIND = "quotes"
BUCKET_KIND = "config"
TABLE_PARTITION_KEY = "id"
CATEGORY_INDEX_NAME = "CategoryIndex"
CATEGORY_INDEX_KEY = "category"
TABLE_TTL_ATTRIBUTE = "ttl"

# IAM
LAMBDA_SERVICE_PRINCIPAL = "lambda.amazonaws.com"
LAMBDA_BASIC_EXECUTION_POLICY = "service-role/AWSLambdaBasicExecutionRole"
BEDROCK_MODEL_RESOURCE = "arn:aws:bedrock:us-east-1::foundation-model/*"
BEDROCK_ACTIONS = frozenset(
    {"bedrock:InvokeModel", "bedrock:InvokeModelWithResponseStream"}
)
DYNAMODB_ACTIONS = frozenset(
    {
        "dynamodb:GetItem",
        "dynamodb:PutItem",
        "dynamodb:Query",
        "dynamodb:Scan",
        "dynamodb:UpdateItem",
        "dynamodb:DeleteItem",
    }
)
S3_OBJECT_ACTIONS = frozenset({"s3:GetObject", "s3:PutObject"})

# Exposure
QUOTES_PATH = "/quotes/random"
CORS_ANY_ORIGIN = "*"
CORS_HEADERS = ("Content-Type", "Authorization")
GATEWAY_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
ENDPOINT_SHORT_MAX_AGE = 300
ENDPOINT_KEY_SET_MAX_AGE = 3600
PASSWORD_MIN_LENGTH = 8
