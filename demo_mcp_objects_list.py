# demo_mcp_objects_list.py
# Version: v1
#
# Demo: list every repository object under a program or function group.
#
# Usage:
#
#   python demo_mcp_objects_list.py ZMY_REPORT PROG/P

import asyncio
import sys

from mcp_abap_adt.client import cleanup
from mcp_abap_adt.tools import tasks


async def main(name: str, parent_type: str) -> None:
    print(f"Calling MCP task: get_objects_list({name!r}, {name!r}, {parent_type!r})")
    try:
        result = await tasks.get_objects_list(name, name, parent_type)

        if result.is_error:
            print(result.text)
        else:
            payload = result.content[0]["json"]
            print(f"Objects returned: {payload['total_objects']}")
            for obj in payload["objects"]:
                print(f"- {obj['OBJECT_TYPE']:<10} {obj['OBJECT_NAME']}  uri={obj['OBJECT_URI']}")
    finally:
        await cleanup()


if __name__ == "__main__":
    args = sys.argv[1:]
    asyncio.run(main(args[0] if args else "ZMY_REPORT", args[1] if len(args) > 1 else "PROG/P"))
