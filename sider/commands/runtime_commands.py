from __future__ import annotations

from typing import Any, Iterable

from sider.protocol.base import Command
from sider.protocol.runtime import CallArgument


class RuntimeCommands:
    """Builders for Runtime domain commands."""

    @staticmethod
    def enable() -> Command:
        return Command(method='Runtime.enable')

    @staticmethod
    def disable() -> Command:
        return Command(method='Runtime.disable')

    @staticmethod
    def call_function_on(
        execution_context_id: int,
        function_declaration: str,
        args: Iterable[Any] = (),
        return_by_value: bool = True,
        await_promise: bool = True,
    ) -> Command:
        """
        Call a function inside an execution context.

        Args:
            execution_context_id: Context to run the function in.
            function_declaration: JavaScript source of the function.
            args: Arguments, each marshaled by value.
            return_by_value: Return a JSON value instead of a remote object.
            await_promise: Wait for the returned promise to settle.
        """
        arguments = [CallArgument(value=value) for value in args]
        return Command(
            method='Runtime.callFunctionOn',
            params={
                'executionContextId': execution_context_id,
                'functionDeclaration': function_declaration,
                'arguments': arguments,
                'returnByValue': return_by_value,
                'awaitPromise': await_promise,
            },
        )
