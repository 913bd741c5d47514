"""Use cases for questions and answers."""