from packages.aip_code_eval.schema import CodeProblem


def present_problem(problem: CodeProblem) -> str:
    """Candidate-facing statement. Test cases are never included."""
    lines = ["Here's your coding problem:", "", f"**{problem.title}**", "", problem.description, ""]

    if problem.examples:
        lines.append("**Examples:**")
        for i, example in enumerate(problem.examples, start=1):
            lines.append(f"Example {i}:")
            lines.append(f"Input: {example.input}")
            lines.append(f"Output: {example.output}")
            if example.explanation:
                lines.append(f"Explanation: {example.explanation}")
            lines.append("")

    if problem.constraints:
        lines.append("**Constraints:**")
        lines.extend(f"- {c}" for c in problem.constraints)
        lines.append("")

    if problem.time_limit:
        lines.append(f"Time Limit: {problem.time_limit:g} seconds per test case")
    if problem.memory_limit:
        lines.append(f"Memory Limit: {problem.memory_limit} MB")

    lines.append("Please implement your solution. Let me know if you need any clarification!")
    return "\n".join(lines)


def next_hint(problem: CodeProblem, stuck_minutes: float, hints_given: int) -> str:
    """Progressive hints: each level unlocks only after the candidate is stuck long enough."""
    if hints_given == 0 and stuck_minutes > 5:
        return "Think about the problem step by step. What's the simplest case you need to handle?"
    if hints_given == 1 and stuck_minutes > 10:
        if problem.constraints:
            return f"Consider the constraints. {problem.constraints[0]} might give you a clue about the approach."
        return "Consider the constraints. They might give you a clue about the approach."
    if hints_given == 2 and stuck_minutes > 15:
        return "What data structure could help you solve this efficiently?"
    return "Take your time. Would you like to talk through your approach?"
