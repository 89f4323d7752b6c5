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

import unittest
from unittest.mock import MagicMock

import aws_cdk as cdk
from aws_cdk.assertions import Annotations, Match, Template
from cdk_nag import AwsSolutionsChecks

from cdk_apig_lambda_aurora.apig_lambda_aurora_stack import (
    ApigLambdaAuroraStack,
    ENDPOINT_URL_FALLBACK,
    endpoint_url,
    override_target_group_name,
)


def synth_stack(database_mode):
    # Skip Docker bundling of the Lambda asset
    app = cdk.App(context={"aws:cdk:bundling-stacks": []})
    stack = ApigLambdaAuroraStack(app, "TestStack", database_mode=database_mode)
    return stack, Template.from_stack(stack)


def logical_id(stack, construct):
    return stack.get_logical_id(construct.node.default_child)


class StackAssertionsMixin:
    stack = None
    template = None

    def test_single_proxy_with_target_group_override(self):
        self.template.resource_count_is("AWS::RDS::DBProxy", 1)
        self.template.resource_count_is("AWS::RDS::DBProxyTargetGroup", 1)
        self.template.has_resource_properties("AWS::RDS::DBProxyTargetGroup", {
            "TargetGroupName": "default"
        })
        self.template.has_resource_properties("AWS::RDS::DBProxy", {
            "DebugLogging": True,
            "EngineFamily": "MYSQL"
        })

    def test_db_port_only_reachable_from_allowed_groups(self):
        db_group_id = logical_id(self.stack, self.stack.db_connection_group)
        lambda_group_id = logical_id(self.stack, self.stack.lambda_to_proxy_group)

        security_groups = self.template.find_resources("AWS::EC2::SecurityGroup")
        self.assertFalse(security_groups[db_group_id]["Properties"].get("SecurityGroupIngress"))

        # add_proxy also opens the database's own port to the group, referenced by attribute
        allowed_ports = (3306, {"Fn::GetAtt": [logical_id(self.stack, self.stack.database), "Endpoint.Port"]})
        sources = set()
        for ingress in self.template.find_resources("AWS::EC2::SecurityGroupIngress").values():
            props = ingress["Properties"]
            if props["GroupId"] != {"Fn::GetAtt": [db_group_id, "GroupId"]}:
                continue
            self.assertIn(props["FromPort"], allowed_ports)
            self.assertEqual(props["ToPort"], props["FromPort"])
            sources.add(props["SourceSecurityGroupId"]["Fn::GetAtt"][0])

        self.assertEqual(sources, {db_group_id, lambda_group_id})

    def test_credentials_secret(self):
        self.template.has_resource_properties("AWS::SecretsManager::Secret", {
            "Name": "TestStack-rds-credentials",
            "GenerateSecretString": {
                "SecretStringTemplate": '{"username": "syscdk"}',
                "GenerateStringKey": "password",
                "ExcludePunctuation": True,
                "IncludeSpace": False
            }
        })

    def test_published_parameter_references_secret(self):
        secret_id = logical_id(self.stack, self.stack.credentials_secret)
        self.template.has_resource_properties("AWS::SSM::Parameter", {
            "Name": "rds-credentials-arn",
            "Value": {"Ref": secret_id}
        })

    def test_function_environment(self):
        secret_id = logical_id(self.stack, self.stack.credentials_secret)
        proxy_id = logical_id(self.stack, self.stack.proxy)
        self.template.has_resource_properties("AWS::Lambda::Function", {
            "Handler": "rds_handler.lambda_handler",
            "Timeout": 30,
            "TracingConfig": {"Mode": "Active"},
            "Environment": {
                "Variables": {
                    "PROXY_ENDPOINT": {"Fn::GetAtt": [proxy_id, "Endpoint"]},
                    "RDS_SECRET_NAME": {"Ref": secret_id},
                    "DB_NAME": "cdkpatterns"
                }
            }
        })

    def test_rest_api_and_output(self):
        self.template.resource_count_is("AWS::ApiGateway::RestApi", 1)
        outputs = self.template.find_outputs("HTTPAPIUrl")
        self.assertEqual(len(outputs), 1)
        self.assertTrue(outputs["HTTPAPIUrl"]["Value"])

    def test_no_unsuppressed_nag_errors(self):
        app = cdk.App(context={"aws:cdk:bundling-stacks": []})
        stack = ApigLambdaAuroraStack(app, "NagStack", database_mode=self.stack.database_mode)
        cdk.Aspects.of(app).add(AwsSolutionsChecks(verbose=True))

        errors = Annotations.from_stack(stack).find_error("*", Match.string_like_regexp("AwsSolutions-.*"))

        self.assertEqual(errors, [])


class TestClusterStack(StackAssertionsMixin, unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.stack, cls.template = synth_stack("cluster")

    def test_cluster_resources(self):
        self.template.resource_count_is("AWS::RDS::DBCluster", 1)
        # Writer and one reader
        self.template.resource_count_is("AWS::RDS::DBInstance", 2)
        self.template.has_resource_properties("AWS::RDS::DBCluster", {
            "Engine": "aurora-mysql",
            "DatabaseName": "cdkpatterns"
        })
        self.template.has_resource("AWS::RDS::DBCluster", {"DeletionPolicy": "Delete"})


class TestInstanceStack(StackAssertionsMixin, unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.stack, cls.template = synth_stack("instance")

    def test_instance_resources(self):
        self.template.resource_count_is("AWS::RDS::DBCluster", 0)
        self.template.resource_count_is("AWS::RDS::DBInstance", 1)
        self.template.has_resource_properties("AWS::RDS::DBInstance", {
            "Engine": "mysql",
            "DBName": "cdkpatterns",
            "DBInstanceClass": "db.t3.small"
        })
        self.template.has_resource("AWS::RDS::DBInstance", {"DeletionPolicy": "Delete"})


class TestStackHelpers(unittest.TestCase):

    def test_unknown_database_mode(self):
        app = cdk.App()
        with self.assertRaises(ValueError):
            ApigLambdaAuroraStack(app, "BadStack", database_mode="serverless")

    def test_endpoint_url(self):
        self.assertEqual(endpoint_url(MagicMock(url="https://abc.execute-api.us-east-1.amazonaws.com/prod/")),
                         "https://abc.execute-api.us-east-1.amazonaws.com/prod/")

    def test_endpoint_url_fallback(self):
        self.assertEqual(endpoint_url(MagicMock(url=None)), ENDPOINT_URL_FALLBACK)
        self.assertEqual(endpoint_url(MagicMock(url="")), ENDPOINT_URL_FALLBACK)

    def test_override_target_group_name_without_target_group(self):
        proxy = MagicMock()
        proxy.node.children = []
        with self.assertRaises(ValueError):
            override_target_group_name(proxy)


if __name__ == "__main__":
    unittest.main()
