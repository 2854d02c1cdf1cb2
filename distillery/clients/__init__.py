"""HTTP clients for the GitLab, HashiCorp and Homebrew release APIs."""