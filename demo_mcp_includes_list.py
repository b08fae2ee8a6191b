# demo_mcp_includes_list.py
# Version: v1
#
# Demo: call the GetIncludesList task directly and print the include tree.
#
# Usage:
#
#   export SAP_URL=https://my-sap:44300 SAP_CLIENT=100 SAP_USERNAME=... SAP_PASSWORD=...
#   python demo_mcp_includes_list.py SAPMV45A

import asyncio
import sys
from typing import Any, Dict

from mcp_abap_adt.client import cleanup
from mcp_abap_adt.tools import tasks


async def main(program: str) -> None:
    print(f"Calling MCP task: get_includes_list({program!r}, 'program', detailed=True)")
    try:
        result = await tasks.get_includes_list(program, "program", detailed=True)

        if result.is_error:
            print(result.text)
            return

        payload: Dict[str, Any] = result.content[0]["json"]
        print(f"Includes found: {payload['total_includes']}")
        for entry in payload["tree"]:
            print(f"{'  ' * (entry['depth'] - 1)}- {entry['name']}")

        if payload["failed_branches"]:
            print(f"Could not read: {', '.join(payload['failed_branches'])}")
    finally:
        await cleanup()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "SAPMV45A"))
