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

import json
import argparse

STACK_NAME = "CdkPatternApigLambdaAuroraStack"
CREDENTIALS_PARAMETER_NAME = "rds-credentials-arn"


def get_stack_outputs(stack_name=STACK_NAME, outputs_file="outputs.json"):
    try:
        with open(outputs_file, "r", encoding="utf-8") as file:
            outputs = json.load(file)
            api_endpoint = outputs.get(stack_name, {}).get("HTTPAPIUrl")
            if not api_endpoint:
                print(f"Error: no HTTPAPIUrl output for stack {stack_name} in {outputs_file}. Pass --stack if you "
                      "deployed with a different stack_id.")
                return None
            return {
                "api_endpoint": api_endpoint
            }
    except FileNotFoundError:
        print(f"Error: {outputs_file} not found. Deploy with 'cdk deploy --outputs-file {outputs_file}' first.")
        return None
    except json.JSONDecodeError:
        print(f"Error: {outputs_file} is not valid JSON.")
        return None


def show_endpoint(stack_name):
    outputs = get_stack_outputs(stack_name)
    if outputs:
        print("\nCall the API with:")
        print(f"curl {outputs['api_endpoint']}")


def show_secret():
    print("\nRun this command to read the database credentials:")
    print(
        f"aws secretsmanager get-secret-value --secret-id $(aws ssm get-parameter --name {CREDENTIALS_PARAMETER_NAME} "
        "--query 'Parameter.Value' --output text) --query 'SecretString' --output text")


def main():
    parser = argparse.ArgumentParser(description="Post-deploy helper for the RDS Proxy stack")
    parser.add_argument("action", choices=["endpoint", "secret"], help="Choose between endpoint and secret")
    parser.add_argument("--stack", default=STACK_NAME, help="Stack name used in outputs.json")
    args = parser.parse_args()

    if args.action == "endpoint":
        show_endpoint(args.stack)
    elif args.action == "secret":
        show_secret()


if __name__ == "__main__":
    main()
