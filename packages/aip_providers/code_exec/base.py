from abc import ABC, abstractmethod
from packages.aip_core.dto import ExecutionRequestDTO, ExecutionResultDTO

# Status ids understood by the execution backend (Judge0 numbering)
STATUS_IN_QUEUE = 1
STATUS_PROCESSING = 2
STATUS_ACCEPTED = 3
STATUS_WRONG_ANSWER = 4
STATUS_TIME_LIMIT_EXCEEDED = 5
STATUS_COMPILATION_ERROR = 6
STATUS_RUNTIME_ERROR = 11

class ICodeExecutionProvider(ABC):
    @abstractmethod
    async def execute(self, request: ExecutionRequestDTO) -> ExecutionResultDTO:
        """
        Run one program against one stdin.
        Args:
            request: source, language id, stdin, expected output and limits
        Returns:
            ExecutionResultDTO with backend status, stdout/stderr, time and memory
        Raises:
            CapabilityFailureError: the sandbox is unreachable or rejected the request
        """
        pass
