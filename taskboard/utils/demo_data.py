# Seed content for the demo workspace provisioned by POST /auth/demo.

DEMO_PROJECTS = [
    {
        "name": "Website Redesign",
        "description": "Redesign and rebuild the company website with modern UI/UX",
        "color": "#3b82f6",
        "tasks": [
            ("Design homepage mockup", "Create initial design mockup for the homepage",
             "done", "high", ["John Doe", "Jane Smith"]),
            ("Review design feedback", "Gather and review feedback from stakeholders",
             "in_progress", "medium", ["Jane Smith"]),
            ("Implement responsive layout", "Make the design responsive for mobile devices",
             "todo", "high", ["John Doe"]),
            ("Setup development environment", "Configure development tools and environment",
             "todo", "medium", ["Demo User"]),
        ],
    },
    {
        "name": "Mobile App Development",
        "description": "Build a mobile application for iOS and Android",
        "color": "#10b981",
        "tasks": [
            ("Wireframe mobile screens", "Create wireframes for main app screens",
             "done", "high", ["Sarah Johnson"]),
            ("Setup React Native project", "Initialize React Native project structure",
             "in_progress", "urgent", ["Mike Wilson"]),
            ("Design app icons", "Create app icons for iOS and Android",
             "in_review", "medium", ["Sarah Johnson", "Jane Smith"]),
            ("Implement authentication", "Add user authentication flow",
             "todo", "high", ["Mike Wilson"]),
            ("Write unit tests", "Create unit tests for core features",
             "todo", "low", ["Demo User"]),
        ],
    },
    {
        "name": "Marketing Campaign",
        "description": "Plan and execute Q1 marketing campaign",
        "color": "#f59e0b",
        "tasks": [
            ("Research target audience", "Conduct market research on target demographics",
             "done", "medium", ["Emily Brown"]),
            ("Create campaign content", "Write copy and create visual content",
             "in_progress", "high", ["Emily Brown", "Jane Smith"]),
            ("Schedule social media posts", "Plan and schedule posts across platforms",
             "todo", "medium", ["Emily Brown"]),
        ],
    },
]
