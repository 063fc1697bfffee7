"""Pytest configuration and shared fixtures for schemahound tests.

This module provides a builder for template resource graphs shaped the
way the schema compiler emits them, plus environment fixtures.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest

from schemahound.config import get_settings


# ============================================================================
# Resource Graph Builder
# ============================================================================

def s3_location(file_name: str) -> Dict[str, Any]:
    """S3 location expression as written for mapping templates."""
    return {
        "Fn::Join": [
            "",
            [
                "s3://",
                {"Ref": "S3DeploymentBucket"},
                "/",
                {"Ref": "S3DeploymentRootKey"},
                f"/resolvers/{file_name}",
            ],
        ]
    }


def lambda_arn(function_name: str) -> Dict[str, Any]:
    """Lambda ARN expression with the env-suffix condition."""
    return {
        "Fn::If": [
            "HasEnvironmentParameter",
            {
                "Fn::Sub": [
                    f"arn:aws:lambda:${{AWS::Region}}:${{AWS::AccountId}}:function:{function_name}-${{env}}",
                    {"env": {"Ref": "env"}},
                ]
            },
            {"Fn::Sub": f"arn:aws:lambda:${{AWS::Region}}:${{AWS::AccountId}}:function:{function_name}"},
        ]
    }


class StackBuilder:
    """Builds a resource map one resource at a time.

    Usage:
        stack = (StackBuilder()
                 .table("PostTable")
                 .dynamo_source("PostDataSource", "PostTable")
                 .function("GetPostFn", "PostDataSource")
                 .resolver("GetPostResolver", "Query", "getPost", ["GetPostFn"])
                 .build())
    """

    def __init__(self) -> None:
        self.resources: Dict[str, Dict[str, Any]] = {}

    def add(self, name: str, kind: str, properties: Dict[str, Any], **extra: Any) -> "StackBuilder":
        resource = {"Type": kind, "Properties": properties}
        resource.update(extra)
        self.resources[name] = resource
        return self

    def table(
        self,
        name: str,
        keys: Iterable[Tuple[str, str, str]] = (("id", "S", "HASH"),),
        attributes: Optional[List[Tuple[str, str]]] = None,
        gsis: Optional[List[Dict[str, Any]]] = None,
        lsis: Optional[List[Dict[str, Any]]] = None,
        ttl: Optional[Dict[str, Any]] = None,
    ) -> "StackBuilder":
        keys = list(keys)
        definitions = {n: t for n, t, _ in keys}
        for n, t in attributes or []:
            definitions[n] = t
        props: Dict[str, Any] = {
            "KeySchema": [{"AttributeName": n, "KeyType": k} for n, _, k in keys],
            "AttributeDefinitions": [{"AttributeName": n, "AttributeType": t} for n, t in definitions.items()],
            "BillingMode": "PAY_PER_REQUEST",
        }
        if gsis:
            props["GlobalSecondaryIndexes"] = gsis
        if lsis:
            props["LocalSecondaryIndexes"] = lsis
        if ttl:
            props["TimeToLiveSpecification"] = ttl
        return self.add(name, "AWS::DynamoDB::Table", props)

    def dynamo_source(self, name: str, table_name: str) -> "StackBuilder":
        return self.add(
            name,
            "AWS::AppSync::DataSource",
            {
                "Name": table_name,
                "Type": "AMAZON_DYNAMODB",
                "DynamoDBConfig": {"TableName": {"Ref": table_name}},
            },
        )

    def lambda_source(self, name: str, function_name: str) -> "StackBuilder":
        return self.add(
            name,
            "AWS::AppSync::DataSource",
            {"Name": name, "Type": "AWS_LAMBDA", "LambdaConfig": {"LambdaFunctionArn": lambda_arn(function_name)}},
        )

    def http_source(self, name: str, endpoint: Any) -> "StackBuilder":
        return self.add(
            name,
            "AWS::AppSync::DataSource",
            {"Name": name, "Type": "HTTP", "HttpConfig": {"Endpoint": endpoint}},
        )

    def typed_source(self, name: str, ds_type: str) -> "StackBuilder":
        return self.add(name, "AWS::AppSync::DataSource", {"Name": name, "Type": ds_type})

    def function(
        self,
        name: str,
        data_source: Any,
        request: Optional[str] = None,
        response: Optional[str] = None,
        inline: bool = False,
    ) -> "StackBuilder":
        if isinstance(data_source, str):
            data_source = {"Fn::GetAtt": [data_source, "Name"]}
        props: Dict[str, Any] = {"Name": name, "DataSourceName": data_source, "FunctionVersion": "2018-05-29"}
        request = request or f"{name}.req.vtl"
        response = response or f"{name}.res.vtl"
        if inline:
            props["RequestMappingTemplate"] = request
            props["ResponseMappingTemplate"] = response
        else:
            props["RequestMappingTemplateS3Location"] = s3_location(request)
            props["ResponseMappingTemplateS3Location"] = s3_location(response)
        return self.add(name, "AWS::AppSync::FunctionConfiguration", props)

    def resolver(
        self,
        name: str,
        type_name: str,
        field_name: str,
        functions: Iterable[Any],
        kind: str = "PIPELINE",
        depends_on: Any = None,
    ) -> "StackBuilder":
        entries = [
            f if isinstance(f, dict) else {"Fn::GetAtt": [f, "FunctionId"]}
            for f in functions
        ]
        props = {
            "TypeName": type_name,
            "FieldName": field_name,
            "Kind": kind,
            "PipelineConfig": {"Functions": entries},
            "RequestMappingTemplate": "$util.qr($ctx.stash.put(\"typeName\", \"%s\"))\n{}" % type_name,
            "ResponseMappingTemplate": "$util.toJson($ctx.prev.result)",
        }
        extra = {"DependsOn": depends_on} if depends_on is not None else {}
        return self.add(name, "AWS::AppSync::Resolver", props, **extra)

    def build(self) -> Dict[str, Dict[str, Any]]:
        return dict(self.resources)


@pytest.fixture
def stack_builder():
    """Factory for StackBuilder instances."""
    return StackBuilder


@pytest.fixture
def post_stack() -> Dict[str, Dict[str, Any]]:
    """A stack with one table and a query, a mutation and an index resolver.

    Returns:
        Raw resource map
    """
    return (
        StackBuilder()
        .table(
            "PostTable",
            keys=[("id", "S", "HASH")],
            attributes=[("blogId", "S")],
            gsis=[
                {
                    "IndexName": "byBlog",
                    "KeySchema": [{"AttributeName": "blogId", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
        )
        .dynamo_source("PostDataSource", "PostTable")
        .function("QueryGetPostDataResolverFn", "PostDataSource", "Query.getPost.req.vtl", "Query.getPost.res.vtl")
        .function(
            "MutationCreatePostDataResolverFn",
            "PostDataSource",
            "Mutation.createPost.req.vtl",
            "Mutation.createPost.res.vtl",
        )
        .function("BlogPostsDataResolverFn", "PostDataSource", "Blog.posts.req.vtl", "Blog.posts.res.vtl")
        .resolver("QueryGetPostResolver", "Query", "getPost", ["QueryGetPostDataResolverFn"])
        .resolver("MutationCreatePostResolver", "Mutation", "createPost", ["MutationCreatePostDataResolverFn"])
        .resolver("BlogPostsResolver", "Blog", "posts", ["BlogPostsDataResolverFn"])
        .build()
    )


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture
def clean_environment():
    """Fixture that cleans schemahound environment variables.

    Removes SCHEMAHOUND_* env vars before test and restores after.
    """
    saved = {k: v for k, v in os.environ.items() if k.startswith("SCHEMAHOUND_")}
    for key in saved:
        del os.environ[key]
    get_settings.cache_clear()

    yield

    for key in [k for k in os.environ if k.startswith("SCHEMAHOUND_")]:
        del os.environ[key]
    os.environ.update(saved)
    get_settings.cache_clear()
