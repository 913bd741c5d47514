"""HTTP handlers for questions and answers."""