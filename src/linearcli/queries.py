"""GraphQL documents used by linearcli.

Selection-set fragments are plain strings interpolated into the documents
below. Every lookup that the resolvers issue takes a single ``$filter``
variable built in Python, so a scope (team, project) travels inside the
same request as the name being looked up.
"""

from __future__ import annotations

# ---- selection sets --------------------------------------------------------

TEAM_FIELDS = "id key name"

PROJECT_FIELDS = "id name"

STATE_FIELDS = f"id name type team {{ {TEAM_FIELDS} }}"

CYCLE_FIELDS = f"id name number startsAt endsAt isActive isNext isPrevious team {{ {TEAM_FIELDS} }}"

MILESTONE_FIELDS = f"id name targetDate sortOrder project {{ {PROJECT_FIELDS} }}"

LABEL_FIELDS = f"id name color isGroup team {{ {TEAM_FIELDS} }} parent {{ id name }}"

USER_FIELDS = "id name displayName email active"

ISSUE_CORE_FIELDS = """
  id
  identifier
  number
  title
  description
  priority
  estimate
  url
  createdAt
  updatedAt
"""

ISSUE_RELATIONS = f"""
  state {{ id name type }}
  assignee {{ id name }}
  team {{ {TEAM_FIELDS} }}
  project {{ {PROJECT_FIELDS} }}
  cycle {{ id name number }}
  projectMilestone {{ id name targetDate }}
  parent {{ id identifier title }}
  labels {{ nodes {{ id name }} }}
"""

ISSUE_COMMENTS = """
  comments {
    nodes {
      id
      body
      createdAt
      updatedAt
      user { id name }
    }
  }
"""

COMPLETE_ISSUE = ISSUE_CORE_FIELDS + ISSUE_RELATIONS

COMPLETE_ISSUE_WITH_COMMENTS = COMPLETE_ISSUE + ISSUE_COMMENTS

PROJECT_DETAILS = f"""
  id
  name
  description
  state
  progress
  targetDate
  createdAt
  updatedAt
  teams {{ nodes {{ {TEAM_FIELDS} }} }}
  lead {{ id name }}
"""

MILESTONE_DETAILS = f"""
  id
  name
  description
  targetDate
  sortOrder
  createdAt
  updatedAt
  project {{ {PROJECT_FIELDS} }}
"""

CYCLE_DETAILS = f"""
  id
  name
  number
  startsAt
  endsAt
  isActive
  isNext
  isPrevious
  progress
  team {{ {TEAM_FIELDS} }}
"""

# ---- resolver lookups ------------------------------------------------------

FIND_TEAMS_QUERY = f"""
query FindTeams($filter: TeamFilter) {{
  teams(filter: $filter, first: 10) {{ nodes {{ {TEAM_FIELDS} }} }}
}}
"""

FIND_STATES_QUERY = f"""
query FindWorkflowStates($filter: WorkflowStateFilter) {{
  workflowStates(filter: $filter, first: 50) {{ nodes {{ {STATE_FIELDS} }} }}
}}
"""

FIND_PROJECTS_QUERY = f"""
query FindProjects($filter: ProjectFilter) {{
  projects(filter: $filter, first: 10) {{ nodes {{ {PROJECT_FIELDS} }} }}
}}
"""

FIND_CYCLES_QUERY = f"""
query FindCycles($filter: CycleFilter) {{
  cycles(filter: $filter, first: 10) {{ nodes {{ {CYCLE_FIELDS} }} }}
}}
"""

FIND_MILESTONES_QUERY = f"""
query FindProjectMilestones($filter: ProjectMilestoneFilter) {{
  projectMilestones(filter: $filter, first: 10) {{ nodes {{ {MILESTONE_FIELDS} }} }}
}}
"""

FIND_LABELS_QUERY = f"""
query FindLabels($filter: IssueLabelFilter) {{
  issueLabels(filter: $filter, first: 100) {{ nodes {{ {LABEL_FIELDS} }} }}
}}
"""

FIND_ISSUES_QUERY = f"""
query FindIssues($filter: IssueFilter) {{
  issues(filter: $filter, first: 10) {{
    nodes {{ id identifier title team {{ {TEAM_FIELDS} }} }}
  }}
}}
"""

FIND_USERS_QUERY = f"""
query FindUsers($filter: UserFilter) {{
  users(filter: $filter, first: 10) {{ nodes {{ {USER_FIELDS} }} }}
}}
"""

# ---- issues ----------------------------------------------------------------

GET_ISSUES_QUERY = f"""
query GetIssues($first: Int!, $orderBy: PaginationOrderBy) {{
  issues(
    first: $first
    orderBy: $orderBy
    filter: {{ state: {{ type: {{ neq: "completed" }} }} }}
  ) {{
    nodes {{ {COMPLETE_ISSUE} }}
  }}
}}
"""

SEARCH_ISSUES_QUERY = f"""
query SearchIssues($term: String!, $first: Int!) {{
  searchIssues(term: $term, first: $first, includeArchived: false) {{
    nodes {{ {COMPLETE_ISSUE} }}
  }}
}}
"""

FILTERED_SEARCH_ISSUES_QUERY = f"""
query FilteredSearchIssues($first: Int!, $filter: IssueFilter, $orderBy: PaginationOrderBy) {{
  issues(first: $first, filter: $filter, orderBy: $orderBy, includeArchived: false) {{
    nodes {{ {COMPLETE_ISSUE} }}
  }}
}}
"""

GET_ISSUE_BY_ID_QUERY = f"""
query GetIssue($id: String!) {{
  issue(id: $id) {{ {COMPLETE_ISSUE_WITH_COMMENTS} }}
}}
"""

GET_ISSUE_BY_IDENTIFIER_QUERY = f"""
query GetIssueByIdentifier($filter: IssueFilter) {{
  issues(filter: $filter, first: 1) {{ nodes {{ {COMPLETE_ISSUE_WITH_COMMENTS} }} }}
}}
"""

CREATE_ISSUE_MUTATION = f"""
mutation CreateIssue($input: IssueCreateInput!) {{
  issueCreate(input: $input) {{
    success
    issue {{ {COMPLETE_ISSUE_WITH_COMMENTS} }}
  }}
}}
"""

UPDATE_ISSUE_MUTATION = f"""
mutation UpdateIssue($id: String!, $input: IssueUpdateInput!) {{
  issueUpdate(id: $id, input: $input) {{
    success
    issue {{ {COMPLETE_ISSUE_WITH_COMMENTS} }}
  }}
}}
"""

# ---- comments --------------------------------------------------------------

CREATE_COMMENT_MUTATION = """
mutation CreateComment($input: CommentCreateInput!) {
  commentCreate(input: $input) {
    success
    comment {
      id
      body
      createdAt
      updatedAt
      user { id name }
    }
  }
}
"""

# ---- workspace listings ----------------------------------------------------

GET_LABELS_QUERY = f"""
query GetLabels($first: Int!, $filter: IssueLabelFilter) {{
  issueLabels(first: $first, filter: $filter) {{ nodes {{ {LABEL_FIELDS} }} }}
}}
"""

GET_PROJECTS_QUERY = f"""
query GetProjects($first: Int!, $orderBy: PaginationOrderBy) {{
  projects(first: $first, orderBy: $orderBy, filter: {{ state: {{ neq: "completed" }} }}) {{
    nodes {{ {PROJECT_DETAILS} }}
  }}
}}
"""

GET_TEAMS_QUERY = """
query GetTeams($first: Int!) {
  teams(first: $first) { nodes { id key name description } }
}
"""

GET_USERS_QUERY = f"""
query GetUsers($first: Int!, $filter: UserFilter) {{
  users(first: $first, filter: $filter) {{ nodes {{ {USER_FIELDS} }} }}
}}
"""

# ---- cycles ----------------------------------------------------------------

GET_CYCLES_QUERY = f"""
query GetCycles($first: Int!, $filter: CycleFilter) {{
  cycles(first: $first, filter: $filter) {{ nodes {{ {CYCLE_DETAILS} }} }}
}}
"""

GET_CYCLE_BY_ID_QUERY = f"""
query GetCycle($id: String!, $issuesFirst: Int) {{
  cycle(id: $id) {{
    {CYCLE_DETAILS}
    issues(first: $issuesFirst) {{ nodes {{ {COMPLETE_ISSUE} }} }}
  }}
}}
"""

# ---- project milestones ----------------------------------------------------

LIST_PROJECT_MILESTONES_QUERY = f"""
query ListProjectMilestones($projectId: String!, $first: Int!) {{
  project(id: $projectId) {{
    id
    name
    projectMilestones(first: $first) {{ nodes {{ {MILESTONE_DETAILS} }} }}
  }}
}}
"""

GET_PROJECT_MILESTONE_BY_ID_QUERY = f"""
query GetProjectMilestone($id: String!, $issuesFirst: Int) {{
  projectMilestone(id: $id) {{
    {MILESTONE_DETAILS}
    issues(first: $issuesFirst) {{ nodes {{ {COMPLETE_ISSUE} }} }}
  }}
}}
"""

CREATE_PROJECT_MILESTONE_MUTATION = f"""
mutation CreateProjectMilestone($input: ProjectMilestoneCreateInput!) {{
  projectMilestoneCreate(input: $input) {{
    success
    projectMilestone {{ {MILESTONE_DETAILS} }}
  }}
}}
"""

UPDATE_PROJECT_MILESTONE_MUTATION = f"""
mutation UpdateProjectMilestone($id: String!, $input: ProjectMilestoneUpdateInput!) {{
  projectMilestoneUpdate(id: $id, input: $input) {{
    success
    projectMilestone {{ {MILESTONE_DETAILS} }}
  }}
}}
"""
