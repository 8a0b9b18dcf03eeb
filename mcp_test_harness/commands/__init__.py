"""
Commands exposed by the test harness CLI.

Each command loads configuration, opens an MCPTestClient and drives an
MCPTestHarness through its own sequence of steps.
"""
