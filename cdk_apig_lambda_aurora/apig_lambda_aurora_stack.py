# /*
#  * Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  * SPDX-License-Identifier: MIT-0
#  *
#  * Permission is hereby granted, free of charge, to any person obtaining a copy of this
#  * software and associated documentation files (the "Software"), to deal in the Software
#  * without restriction, including without limitation the rights to use, copy, modify,
#  * merge, publish, distribute, sublicense, and/or sell copies of the Software, and to
#  * permit persons to whom the Software is furnished to do so.
#  *
#  * THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED,
#  * INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A
#  * PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT
#  * HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
#  * OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE
#  * SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.
#  */

import os

from aws_cdk import (
    aws_ec2 as ec2,
    aws_rds as rds,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_apigateway as apigw,
    aws_secretsmanager as sm,
    aws_ssm as ssm,
    aws_logs as logs,
    Stack, CfnOutput, Duration, BundlingOptions, RemovalPolicy
)
from cdk_nag import NagSuppressions
from constructs import Construct

DATABASE_MODE_CLUSTER = "cluster"
DATABASE_MODE_INSTANCE = "instance"
DATABASE_MODES = (DATABASE_MODE_CLUSTER, DATABASE_MODE_INSTANCE)

DATABASE_USERNAME = "syscdk"
DATABASE_NAME = "cdkpatterns"
DATABASE_PORT = 3306
CREDENTIALS_PARAMETER_NAME = "rds-credentials-arn"
TARGET_GROUP_NAME = "default"
ENDPOINT_URL_FALLBACK = "Something went wrong with the deploy"


def override_target_group_name(proxy: rds.DatabaseProxy, name: str = TARGET_GROUP_NAME) -> rds.CfnDBProxyTargetGroup:
    """Set TargetGroupName on the proxy's L1 target group.

    The generated AWS::RDS::DBProxyTargetGroup does not always carry the
    TargetGroupName that CloudFormation requires, so it is patched in place.

    Args:
        proxy (rds.DatabaseProxy): Proxy created by ``add_proxy``.
        name (str): Target group name to force, ``default`` unless overridden.

    Returns:
        rds.CfnDBProxyTargetGroup: The patched target group.

    Raises:
        ValueError: If the proxy has no target group child.
    """
    target_group = next(
        (child for child in proxy.node.children if isinstance(child, rds.CfnDBProxyTargetGroup)),
        None
    )
    if target_group is None:
        raise ValueError(f"No CfnDBProxyTargetGroup found under proxy {proxy.node.path}")
    target_group.add_property_override("TargetGroupName", name)
    return target_group


def endpoint_url(api: apigw.RestApi) -> str:
    """Gateway URL, or the fallback string; the URL is a deploy-time token and is never empty at synth."""
    return api.url or ENDPOINT_URL_FALLBACK


class ApigLambdaAuroraStack(Stack):
    vpc: ec2.IVpc
    lambda_to_proxy_group: ec2.SecurityGroup
    db_connection_group: ec2.SecurityGroup
    credentials_secret: sm.Secret
    database: rds.DatabaseCluster | rds.DatabaseInstance
    proxy: rds.DatabaseProxy
    function: lambda_.Function
    api: apigw.LambdaRestApi

    def __init__(self, scope: Construct, construct_id: str, database_mode: str = DATABASE_MODE_CLUSTER,
                 **kwargs) -> None:
        if database_mode not in DATABASE_MODES:
            raise ValueError(f"Unknown database mode '{database_mode}', expected one of {DATABASE_MODES}")
        super().__init__(scope, construct_id, **kwargs)
        self.database_mode = database_mode

        # RDS needs to be set up in a VPC
        self.vpc = ec2.Vpc(self, "Vpc", max_azs=2)
        self.vpc.add_flow_log("FlowLog")

        # Lets the Lambda function reach the proxy
        self.lambda_to_proxy_group = ec2.SecurityGroup(
            self, "Lambda to RDS Proxy Connection",
            vpc=self.vpc
        )
        # Lets the proxy reach the database
        self.db_connection_group = ec2.SecurityGroup(
            self, "Proxy to DB Connection",
            vpc=self.vpc
        )
        self.db_connection_group.add_ingress_rule(
            self.db_connection_group,
            ec2.Port.tcp(DATABASE_PORT),
            "allow db connection"
        )
        self.db_connection_group.add_ingress_rule(
            self.lambda_to_proxy_group,
            ec2.Port.tcp(DATABASE_PORT),
            "allow lambda connection"
        )

        # Generated username/password pair, read by the proxy and the function
        self.credentials_secret = sm.Secret(
            self, "DBCredentialsSecret",
            secret_name=f"{construct_id}-rds-credentials",
            generate_secret_string=sm.SecretStringGenerator(
                secret_string_template=f'{{"username": "{DATABASE_USERNAME}"}}',
                exclude_punctuation=True,
                include_space=False,
                generate_string_key="password"
            )
        )
        NagSuppressions.add_resource_suppressions(self.credentials_secret, [
            {"id": "AwsSolutions-SMG4", "reason": "Credential rotation is managed outside of this example."}
        ])

        ssm.StringParameter(
            self, "DBCredentialsArn",
            parameter_name=CREDENTIALS_PARAMETER_NAME,
            string_value=self.credentials_secret.secret_arn
        )

        if database_mode == DATABASE_MODE_CLUSTER:
            self.database = self._create_cluster()
        else:
            self.database = self._create_instance()

        self.proxy = self.database.add_proxy(
            f"{construct_id}aurora-proxy",
            secrets=[self.credentials_secret],
            debug_logging=True,
            vpc=self.vpc,
            security_groups=[self.db_connection_group]
        )
        override_target_group_name(self.proxy)

        self.function = self._create_function()
        self.credentials_secret.grant_read(self.function)

        # API Gateway REST API proxying every path and method to the function
        self.api = apigw.LambdaRestApi(
            self, "Endpoint",
            handler=self.function
        )
        NagSuppressions.add_resource_suppressions(self.api, [
            {"id": "AwsSolutions-APIG1", "reason": "Access logging is not required for this example."},
            {"id": "AwsSolutions-APIG2", "reason": "The proxy integration accepts any request shape."},
            {"id": "AwsSolutions-APIG3", "reason": "WAF is not required for this example."},
            {"id": "AwsSolutions-APIG4", "reason": "The endpoint is intentionally public."},
            {"id": "AwsSolutions-APIG6", "reason": "Execution logging is not required for this example."},
            {"id": "AwsSolutions-COG4", "reason": "Cognito authorization is not required for this example."}
        ], True)

        NagSuppressions.add_stack_suppressions(
            self,
            [
                # LogRetention, VPC execution and API Gateway CloudWatch roles use AWS managed policies
                {
                    "id": "AwsSolutions-IAM4",
                    "reason": "AWS managed policies for Lambda execution and API Gateway logging are acceptable for this example.",
                    "appliesTo": [
                        "Policy::arn:<AWS::Partition>:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole",
                        "Policy::arn:<AWS::Partition>:iam::aws:policy/service-role/AWSLambdaVPCAccessExecutionRole",
                        "Policy::arn:<AWS::Partition>:iam::aws:policy/service-role/AmazonAPIGatewayPushToCloudWatchLogs"
                    ]
                },
                {
                    "id": "AwsSolutions-IAM5",
                    "reason": "Lambda log retention and X-Ray tracing require these permissions to function correctly",
                    "appliesTo": [
                        "Resource::*"
                    ]
                }
        ])

        CfnOutput(self, "HTTP API Url", value=endpoint_url(self.api),
                  description="API Gateway endpoint URL for the RDS Proxy function")

    def _create_cluster(self) -> rds.DatabaseCluster:
        instance_type = ec2.InstanceType.of(ec2.InstanceClass.BURSTABLE3, ec2.InstanceSize.MEDIUM)
        cluster = rds.DatabaseCluster(
            self, "DatabaseCluster",
            default_database_name=DATABASE_NAME,
            engine=rds.DatabaseClusterEngine.aurora_mysql(
                version=rds.AuroraMysqlEngineVersion.VER_3_04_0
            ),
            credentials=rds.Credentials.from_secret(self.credentials_secret),
            writer=rds.ClusterInstance.provisioned("Writer", instance_type=instance_type),
            readers=[rds.ClusterInstance.provisioned("Reader", instance_type=instance_type)],
            vpc=self.vpc,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
            security_groups=[self.db_connection_group],
            storage_encrypted=True,
            removal_policy=RemovalPolicy.DESTROY,
            deletion_protection=False
        )
        NagSuppressions.add_resource_suppressions(cluster, [
            {"id": "AwsSolutions-RDS6", "reason": "Connections authenticate through the proxy with the generated secret."},
            {"id": "AwsSolutions-RDS10", "reason": "Deletion protection is not required for this example"},
            {"id": "AwsSolutions-RDS11", "reason": "Default port is sufficient for this example"},
            {"id": "AwsSolutions-RDS14", "reason": "Backtrack is not required for this example"}
        ], True)
        return cluster

    def _create_instance(self) -> rds.DatabaseInstance:
        instance = rds.DatabaseInstance(
            self, "DatabaseInstance",
            database_name=DATABASE_NAME,
            engine=rds.DatabaseInstanceEngine.mysql(
                version=rds.MysqlEngineVersion.VER_8_0
            ),
            instance_type=ec2.InstanceType.of(ec2.InstanceClass.BURSTABLE3, ec2.InstanceSize.SMALL),
            credentials=rds.Credentials.from_secret(self.credentials_secret),
            vpc=self.vpc,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
            security_groups=[self.db_connection_group],
            storage_encrypted=True,
            removal_policy=RemovalPolicy.DESTROY,
            deletion_protection=False
        )
        NagSuppressions.add_resource_suppressions(instance, [
            {"id": "AwsSolutions-RDS3", "reason": "Multi-AZ is not required for this example"},
            {"id": "AwsSolutions-RDS10", "reason": "Deletion protection is not required for this example"},
            {"id": "AwsSolutions-RDS11", "reason": "Default port is sufficient for this example"}
        ])
        return instance

    def _create_function(self) -> lambda_.Function:
        asset_path = os.path.join(
            os.path.dirname(os.path.abspath(__file__)), "..", "functions"
        )
        lambda_role = iam.Role(
            self, "RDSLambdaRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaVPCAccessExecutionRole")
            ]
        )
        function = lambda_.Function(
            self, "RDSLambda",
            runtime=lambda_.Runtime.PYTHON_3_12,
            handler="rds_handler.lambda_handler",
            code=lambda_.Code.from_asset(
                asset_path,
                exclude=["tests", "__pycache__"],
                bundling=BundlingOptions(
                    image=lambda_.Runtime.PYTHON_3_12.bundling_image,
                    platform="linux/amd64",
                    command=[
                        "bash",
                        "-c",
                        "pip install --platform manylinux2014_x86_64 --target /asset-output --implementation cp " +
                        "--python-version 3.12 --only-binary=:all: --upgrade -r requirements.txt && cp -au . " +
                        "/asset-output",
                    ]
                )
            ),
            role=lambda_role,
            vpc=self.vpc,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
            security_groups=[self.lambda_to_proxy_group],
            tracing=lambda_.Tracing.ACTIVE,
            timeout=Duration.seconds(30),
            environment={
                "PROXY_ENDPOINT": self.proxy.endpoint,
                "RDS_SECRET_NAME": self.credentials_secret.secret_arn,
                "DB_NAME": DATABASE_NAME
            },
            log_retention=logs.RetentionDays.ONE_WEEK
        )
        NagSuppressions.add_resource_suppressions(function, [
            {"id": "AwsSolutions-L1", "reason": "Python 3.12 is the stable version tested for this solution"}
        ])
        return function
