"""schemahound constants.

Resource kinds, property names and naming conventions emitted by the
upstream schema compiler.
"""

# Resource kinds
DYNAMODB_TABLE = "AWS::DynamoDB::Table"
APPSYNC_RESOLVER = "AWS::AppSync::Resolver"
APPSYNC_FUNCTION = "AWS::AppSync::FunctionConfiguration"
LAMBDA_FUNCTION = "AWS::Lambda::Function"

PIPELINE_KIND = "PIPELINE"

# Key roles
KEY_TYPE_HASH = "HASH"
KEY_TYPE_RANGE = "RANGE"

# Top-level GraphQL operation types
DEFAULT_ROOT_TYPE_NAMES = ("Query", "Mutation", "Subscription")

# Naming
TABLE_NAME_SUFFIX = "Table"
TEMPLATE_EXTENSION = ".vtl"
REQUEST_TEMPLATE_SUFFIX = "req"
RESPONSE_TEMPLATE_SUFFIX = "res"

# Intrinsic functions
REF = "Ref"
GET_ATT = "Fn::GetAtt"
FN_IF = "Fn::If"
FN_SUB = "Fn::Sub"
FN_JOIN = "Fn::Join"

# Top-level sections of a stack template
TEMPLATE_SECTIONS = (
    "AWSTemplateFormatVersion",
    "Description",
    "Metadata",
    "Parameters",
    "Mappings",
    "Conditions",
    "Transform",
    "Resources",
    "Outputs",
)
