"""Prompt text for chunk reviews."""

from __future__ import annotations

from typing import Dict, Final

from pr_reviewer.models.review import Chunk, PRDetails, ParsedFile, display_line

RAILS_GUIDELINES: Final[str] = """
- **Environment Specific Code**: Avoid hard-coding values. Use configuration files or environment variables.

- **Legacy Code**: Remove hard-coded values, clean up unused code, and ensure cross-environment compatibility.

- **Code Quality**: Adhere to Ruby and Rails Style Guides. Use Rubocop.

- **OOP Principles**: Follow SOLID principles.

- **Methods**: Keep methods concise. Use guard clauses and refactoring to reduce complexity.

- **Variables**: Use clear and descriptive names within appropriate scope.

- **File Structure**:
  - `app/`: Domain-specific code.
  - `lib/`: Generic Ruby code.

- **Keyword Arguments**: Prefer keyword arguments for readability.

- **Service Layer**: Encapsulate business logic within services.

- **Database Performance**: Avoid N+1 queries. Use `includes` or `preload`. Index frequently queried columns and use bulk operations.

- **Safe Migrations**: Avoid models in migrations. Use plain SQL and commit `structure.sql`. Use `LHM` for complex migrations.
"""

ANGULAR_GUIDELINES: Final[str] = """
- **Component Structure**: Ensure components are small and focused on a single responsibility. Follow the Angular style guide for component structure.

- **Module Organization**: Organize modules to keep related functionalities together. Use feature modules for distinct features.

- **Service Usage**: Use services for business logic and data access. Keep components focused on presentation logic.

- **Reactive Programming**: Prefer the use of RxJS for asynchronous operations. Ensure proper management of subscriptions to avoid memory leaks.

- **Templates**: Keep templates clean and readable. Use Angular directives (`*ngIf`, `*ngFor`) appropriately.

- **Change Detection**: Optimize change detection by using `OnPush` strategy where possible to improve performance.

- **Forms**: Use Reactive Forms for complex forms and Template-driven forms for simpler ones. Ensure proper validation.

- **Routing**: Use the Angular Router for navigation. Ensure routes are organized and lazy load modules where appropriate.

- **Dependency Injection**: Use Angular's dependency injection to manage dependencies. Avoid creating instances manually.

- **Testing**: Ensure comprehensive unit tests for components, services, and other classes. Use Jasmine and Karma for testing.
"""

ANGULARJS_GUIDELINES: Final[str] = """
- **Component Structure**: Ensure components follow a single responsibility principle. Organize code using modules.

- **Controller Usage**: Minimize the use of controllers. Prefer directives and services.

- **Scope Management**: Avoid excessive use of `$scope`. Prefer using `controllerAs` syntax and bind properties to the controller.

- **Service Usage**: Use services and factories for business logic. Keep controllers lean.

- **Templates**: Keep templates clean. Use directives to encapsulate reusable components.

- **Dependency Injection**: Use AngularJS dependency injection to manage dependencies. Avoid creating instances manually.

- **Performance**: Optimize watchers and digest cycles. Use one-time bindings where possible.

- **Testing**: Ensure comprehensive unit tests for controllers, services, and directives. Use Jasmine and Karma for testing.
"""

CYPRESS_GUIDELINES: Final[str] = """
- **Test Structure**: Organize tests in a logical structure. Use `describe` and `it` blocks to structure test cases.

- **Selectors**: Use data attributes for selecting elements (`data-cy`). Avoid using selectors based on CSS or HTML structure which may change.

- **Assertions**: Use appropriate assertions to verify application behavior. Avoid excessive assertions in a single test.

- **Test Data**: Use fixtures and factories for test data. Avoid hardcoding data within tests.

- **Commands**: Use custom Cypress commands to reuse common test logic.

- **Error Handling**: Ensure tests handle errors gracefully and provide meaningful error messages.

- **Performance**: Optimize tests to run quickly. Avoid unnecessary steps and redundant tests.

- **Cross-browser Testing**: Ensure tests run across different browsers to verify compatibility.
"""

TERRAFORM_GUIDELINES: Final[str] = """
- **Avoid duplicate review comments**: If the same comment applies to multiple lines within the same file or across different files, consolidate your feedback and leave a single comment.
- **Ignore reviewing commentlines**: Ignore reviewing newly added or edited commentlines in the code.
- **Ignore reviewing boolean variables**: Ignore reviewing boolean values in YAML config files.
"""

FRAMEWORK_GUIDELINES: Final[Dict[str, str]] = {
    "Ruby on Rails": RAILS_GUIDELINES,
    "Angular": ANGULAR_GUIDELINES,
    "AngularJS": ANGULARJS_GUIDELINES,
    "Cypress": CYPRESS_GUIDELINES,
    "Terraform": TERRAFORM_GUIDELINES,
}

RESPONSE_FORMAT: Final[str] = '{"reviews": [{"lineNumber": <line_number>, "reviewComment": "<review comment>"}]}'


def get_guidelines(framework: str) -> str:
    return FRAMEWORK_GUIDELINES.get(framework.strip(), "")


def format_chunk(chunk: Chunk) -> str:
    """Render a chunk as its header followed by line-numbered changes."""

    lines = [chunk.header]
    lines.extend(f"{display_line(change)} {change.content}" for change in chunk.changes)
    return "\n".join(lines)


def build_prompt(file: ParsedFile, chunk: Chunk, pr_details: PRDetails, framework: str = "") -> str:
    framework = framework.strip()
    subject = f"{framework} code" if framework else "code"
    best_practices_scope = f"{framework} and the overall project" if framework else "the overall project"

    return f"""Your task is to review a pull request for {subject}. Follow these instructions:

- Provide your response in JSON format: {RESPONSE_FORMAT}
- Comment only where there is an issue or a suggestion for improvement. No positive comments.
- Use GitHub Markdown format for comments.
- Use the line numbers shown at the start of each diff line for "lineNumber".
- Identify specific types of issues:
  - **Security**: Look for vulnerabilities such as SQL injection, XSS, and insecure configurations.
  - **Performance**: Identify potential performance bottlenecks and suggest optimizations.
  - **Maintainability**: Ensure the code is easy to read and maintain. Suggest refactoring if necessary.
  - **Best Practices**: Ensure adherence to best practices specific to {best_practices_scope}.
  - **Testing**: Verify that the code changes include appropriate tests. If not, suggest adding tests.
  - **Documentation**: Check if the code changes are well-documented. If not, suggest improvements in documentation.

{get_guidelines(framework)}

Review the following code diff in the file "{file.path}", considering the pull request title and description for context:

Pull request title: {pr_details.title}
Pull request description:

---
{pr_details.description}
---

Git diff to review:

```diff
{format_chunk(chunk)}
```
"""
