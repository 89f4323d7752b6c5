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

import html

HTML_HEADERS = {"Content-Type": "text/html"}
TEXT_HEADERS = {"Content-Type": "text/plain"}


def html_response(visits):
    """Build an API Gateway proxy response listing the recorded visits.

    Args:
        visits (List[Dict[str, Any]]): Rows with ``id``, ``url`` and ``creation_time`` keys.

    Returns:
        Dict: A 200 proxy integration response with an HTML body.
    """
    rows = "".join(
        f"<tr><td>{visit['id']}</td><td>{html.escape(str(visit['url']))}</td>"
        f"<td>{html.escape(str(visit['creation_time']))}</td></tr>"
        for visit in visits
    )
    body = (
        "<html><body>"
        "<h1>You have connected to the database through RDS Proxy</h1>"
        f"<p>Recent visits ({len(visits)}):</p>"
        "<table><tr><th>id</th><th>url</th><th>creation_time</th></tr>"
        f"{rows}</table>"
        "</body></html>"
    )
    return {"statusCode": 200, "headers": HTML_HEADERS, "body": body}


def error_response(message, status_code=500):
    return {"statusCode": status_code, "headers": TEXT_HEADERS, "body": message}
